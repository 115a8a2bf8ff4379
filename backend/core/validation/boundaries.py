"""Validation at the API Boundary

FastAPI integration: run a validator before the route body executes.

    @router.post("/register")
    async def register(v: RegisterValidator = Depends(use_validator(RegisterValidator))):
        return {"email": v.get("body.email")}

A failing validation raises ParameterException, rendered by the registered
error handlers as a 400 response. The validator name, its final state and the
error count are left on ``request.state`` for the request logging middleware.
"""
from __future__ import annotations

from typing import Awaitable, Callable, TypeVar

from fastapi import Request

from core.logging import bind_context

from .base import BaseValidator
from .context import RequestContext
from .errors import ParameterException

V = TypeVar("V", bound=BaseValidator)


def use_validator(validator_cls: type[V]) -> Callable[[Request], Awaitable[V]]:
    """FastAPI dependency constructing and running ``validator_cls``."""

    async def dependency(request: Request) -> V:
        name = validator_cls.__name__
        bind_context(validator=name)
        request.state.validator = name

        validator = validator_cls(await RequestContext.from_request(request))
        try:
            return await validator.validate()
        except ParameterException as e:
            request.state.error_count = len(e.messages)
            raise
        finally:
            request.state.validation = validator.state.value

    dependency.__name__ = f"use_{validator_cls.__name__}"
    return dependency
