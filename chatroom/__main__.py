import logging

import uvicorn

from .settings import get_settings


def main():
    settings = get_settings()
    logging.basicConfig(level=settings.log_level, format='[%(asctime)s] %(levelname)s - %(message)s')
    uvicorn.run('chatroom.app:app', host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == '__main__':
    main()
