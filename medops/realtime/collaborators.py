"""Interfaces the realtime layer consumes from storage and the cipher."""

from typing import Any, Protocol


class ClinicDataSource(Protocol):
    """Async data access used by the dashboard push and inbound handlers."""

    async def async_get_today_patients(self, today: str | None = None) -> list[dict[str, Any]]: ...

    async def async_get_appointments(self) -> list[dict[str, Any]]: ...

    async def async_get_all_patients(self) -> list[dict[str, Any]]: ...

    async def async_add_message(self, message: dict[str, Any]) -> dict[str, Any]: ...

    async def async_add_patient(self, patient: dict[str, Any]) -> dict[str, Any]: ...


class Cipher(Protocol):
    """Symmetric string cipher; both directions may raise on bad input."""

    def encrypt(self, text: str) -> str: ...

    def decrypt(self, ciphertext: str) -> str: ...
