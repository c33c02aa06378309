# uvicorn fanline.asgi:app
from fanline.main import create_app

app = create_app()
