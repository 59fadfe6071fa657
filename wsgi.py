import os

from app import create_app

application = create_app()

if __name__ == "__main__":
    application.run(port=int(os.getenv("PORT", "5000")))
