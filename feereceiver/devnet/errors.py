from __future__ import annotations


class DevnetRevert(Exception):
    """A devnet contract call reverted. The message mirrors the revert string."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


__all__ = ["DevnetRevert"]
