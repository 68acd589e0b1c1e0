from fastapi import Request

from television.services.television import Television


def get_television(request: Request) -> Television:
    return request.app.state.television
