import uvicorn

from .config import HOST, PORT

uvicorn.run("chat_api.main:app", host=HOST, port=PORT)
