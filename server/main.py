# server/main.py
# uvicorn server.main:app
from server.app_factory import create_app

app = create_app()
