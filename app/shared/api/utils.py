from typing import Any, Literal
from pydantic import BaseModel, Field
from os import environ
from uuid import uuid4
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse
from functools import lru_cache
from pathlib import Path
from importlib import import_module
from loguru import logger


from .errors import E_INTERNAL, E_INVALID_PARAMS


def format_error(ex: BaseException) -> str:
    from traceback import TracebackException
    return ''.join(TracebackException.from_exception(ex).format())


class ApiResponse(BaseModel):
    version: str | None = Field(default_factory=lambda: environ.get('BUILD_COMMIT', 'dev'))


class ApiSuccess(ApiResponse):
    success: Literal[True] = True
    results: Any = "OK"


class ApiFailure(ApiResponse):
    success: Literal[False] = False
    errcode: str = E_INTERNAL
    erresid: str = Field(default_factory=lambda: uuid4().hex[:10])
    errmesg: str = 'We are sorry, an error occurred.'


def api_failure(
    errcode: str | None = None,
    errmesg: Exception | str | None = None,
    *,
    trace: Any = None,
):
    import inspect

    if not errcode:
        errcode = ApiFailure.model_fields['errcode'].default

    if isinstance(errmesg, Exception):
        errmesg = format_error(errmesg)

    if not errmesg:
        errmesg = ApiFailure.model_fields['errmesg'].default

    failure = ApiFailure(errcode=str(errcode), errmesg=errmesg)

    caller_frame = inspect.stack()[1]
    module = inspect.getmodule(caller_frame.frame)
    module_name = module.__name__ if module and getattr(module, "__name__", None) else caller_frame.filename
    caller_info = f"{module_name}:{caller_frame.function}:{caller_frame.lineno}"

    logger.warning(
        f'{failure.errcode} {failure.erresid}\n{failure.errmesg} '
        f'caller={caller_info} trace={trace}'
    )

    return failure


def check_error(results: ApiFailure | dict) -> tuple[bool, bool]:
    if isinstance(results, ApiFailure):
        return True, results.errcode == E_INTERNAL

    if isinstance(results, dict) and 'errcode' in results:
        return True, results['errcode'] == E_INTERNAL

    return False, False


def make_response(results, *, status_code: int | None = None):
    if isinstance(results, Exception):
        response = api_failure(errmesg=format_error(results))
        if status_code is None:
            status_code = 500
    else:
        response = results
        is_error, is_internal = check_error(results)
        if status_code is None:
            if is_error:
                status_code = 500 if is_internal else 400
            else:
                status_code = 200

    return ORJSONResponse(
        status_code=status_code,
        content=response.model_dump(by_alias=True) if hasattr(response, 'model_dump') else response
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()

    logger.warning(
        "Validation error: path={} method={} errors={}",
        request.url.path, request.method, errors
    )

    failure = api_failure(E_INVALID_PARAMS, errmesg=str(errors))
    return ORJSONResponse(status_code=422, content=failure.model_dump())


ROUTE_PACKAGES = ('app.shared.api', 'app.api')


def load_routes(app: FastAPI, prefix: str):
    """Mount the ``router`` of every module found under ``ROUTE_PACKAGES``."""
    for package in ROUTE_PACKAGES:
        load_routes_in_package(app, prefix, package)

    for route_info in get_all_routes_info(app):
        methods = ','.join(route_info['methods'])
        logger.info('Loaded route: {:<12} {:<60} {}', methods, route_info['path'], route_info['endpoint'])


def iter_route_modules(package: str):
    # Namespace packages: __path__ is iterable but not always indexable
    folder = Path(next(iter(import_module(package).__path__)))
    for path in sorted(folder.rglob('*.py')):
        if path.name == '__init__.py':
            continue
        parts = path.relative_to(folder).with_suffix('').parts
        yield '.'.join((package, *parts))


def load_routes_in_package(app: FastAPI, prefix: str, package: str):
    from ..config import config
    disabled_routes = config.get_list('API_DISABLED')
    logger.debug('disabled routes: {}', disabled_routes)

    for name in iter_route_modules(package):
        disabled = next((item for item in disabled_routes if f'.{item}' in name), None)
        if disabled:
            logger.warning('disabled route {} in {}', disabled, name)
            continue

        try:
            module = import_module(name)
        except ImportError as e:
            logger.warning('Failed to import {}: {}', name, e)
            continue

        router = getattr(module, 'router', None)
        if router is not None:
            app.include_router(router, prefix=prefix)
            logger.info('Added routes in {}', name)


def get_all_routes_info(app: FastAPI):
    return [
        {
            'methods': sorted(route.methods),
            'path': route.path,
            'name': route.name,
            'endpoint': getattr(route.endpoint, '__name__', str(route.endpoint)),
        }
        for route in app.routes
        if getattr(route, 'methods', None)
    ]


@lru_cache
def get_worker_info():
    worker_name = environ.get('WORKER_NAME', 'openvidu-control')

    # BUILD_COMMIT looks like "<branch>-<sha>"
    parts = environ.get('BUILD_COMMIT', '').split('-')
    commit_id = parts[1] if len(parts) > 1 else 'dev'

    return worker_name, commit_id, uuid4().hex[:8]


def init_logger():
    import sys
    import logging
    from ..config import config

    for name in ('httpx', 'httpcore'):
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.remove()

    worker_name, commit_id, _ = get_worker_info()

    if config.get_bool('DEBUG'):
        logger_level = 'DEBUG'
        logger_format = (
            f'<yellow>{worker_name}:{commit_id}</yellow> | '
            '<green>{time:MM-DD HH:mm:ss.SSS}</green> | '
            '<level>{level: <8}</level> | '
            '<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | '
            '<level>{message}</level>'
        )
    else:
        logger_level = 'INFO'
        logger_format = (
            f'{worker_name}:{commit_id} | '
            '{time:MM-DD HH:mm:ss.SSS} | '
            '{level: <8} | '
            '{name}:{function}:{line} | '
            '{message}'
        )
    logger.add(sys.stderr, level=logger_level, format=logger_format)
