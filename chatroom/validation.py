"""Turn request validation failures into the flat list of messages clients expect."""
from typing import Any, Dict, Iterable, List

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


def format_errors(errors: Iterable[Dict[str, Any]]) -> List[str]:
    messages = []
    for err in errors:
        loc = [str(part) for part in err.get('loc', ()) if part not in ('body', 'header', 'query')]
        field = '.'.join(loc) or 'body'
        messages.append(f'"{field}" {err.get("msg", "is invalid")}')
    return messages


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(format_errors(exc.errors()), status_code=422)
