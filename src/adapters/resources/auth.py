"""Recurso: autenticación (`/auth/*`)."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from adapters.resources.base import ResourceApi
from core.domain.keys import require_identifier
from core.domain.models import (
    AuthPayload,
    LoginForm,
    MessagePayload,
    RegisterForm,
    ResponseEnvelope,
    User,
)
from core.errors import InvalidIdentifierError


class AuthApi(ResourceApi):
    async def login(self, form: LoginForm | Mapping[str, Any]) -> ResponseEnvelope[AuthPayload]:
        form = LoginForm.model_validate(form) if isinstance(form, Mapping) else form
        return await self._write("POST", "/auth/login", AuthPayload, form.to_wire())

    async def register(self, form: RegisterForm | Mapping[str, Any]) -> ResponseEnvelope[AuthPayload]:
        form = RegisterForm.model_validate(form) if isinstance(form, Mapping) else form
        return await self._write("POST", "/auth/register", AuthPayload, form.to_wire())

    async def forgot_password(self, email: str) -> ResponseEnvelope[MessagePayload]:
        email = require_identifier("email", email)
        return await self._write("POST", "/auth/forgot-password", MessagePayload, {"email": email})

    async def reset_password(self, token: str, password: str) -> ResponseEnvelope[MessagePayload]:
        if not password:
            raise InvalidIdentifierError("password")
        body = {"token": require_identifier("token", token), "password": password}
        return await self._write("POST", "/auth/reset-password", MessagePayload, body)

    async def me(self) -> ResponseEnvelope[User]:
        """Resuelve la identidad ("who am I") a partir del token enviado."""

        return await self._get("/auth/me", User)

    async def logout(self) -> ResponseEnvelope[MessagePayload]:
        return await self._write("POST", "/auth/logout", MessagePayload)
