from addrspec.models.email import Email

__all__ = [
    "Email",
]
