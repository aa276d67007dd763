"""INI credential blob parsing (AWS shared-credentials format)."""

from __future__ import annotations

import configparser
from dataclasses import dataclass

from .errors import CredentialParseError

_ROOT_SECTION = "__root__"


@dataclass(frozen=True)
class Credentials:
    access_key_id: str
    secret_access_key: str

    def __repr__(self) -> str:
        return f"Credentials(access_key_id={self.access_key_id!r}, secret_access_key='***')"


def parse_credentials(
    blob: bytes,
    key_name: str = "aws_access_key_id",
    secret_key_name: str = "aws_secret_access_key",
    *,
    section: str = "default",
) -> Credentials:
    """Parse an INI blob and return the two named values from ``section``.

    Missing sections or keys resolve to empty strings; only a blob that is not
    valid INI raises :class:`CredentialParseError`.
    """
    try:
        text = blob.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise CredentialParseError(f"credentials are not utf-8 text: {exc}") from exc
    try:
        parser = _read_ini(text)
    except configparser.MissingSectionHeaderError:
        # Keys ahead of any header belong to an unnamed root section, never to `section`.
        try:
            parser = _read_ini(f"[{_ROOT_SECTION}]\n{text}")
        except configparser.Error as exc:
            raise CredentialParseError(f"credentials are not valid INI: {exc}") from exc
    except configparser.Error as exc:
        raise CredentialParseError(f"credentials are not valid INI: {exc}") from exc
    return Credentials(
        access_key_id=_lookup(parser, section, key_name),
        secret_access_key=_lookup(parser, section, secret_key_name),
    )


def _read_ini(text: str) -> configparser.ConfigParser:
    parser = configparser.ConfigParser(interpolation=None, strict=False)
    # Key names are case-sensitive in the shared-credentials format.
    parser.optionxform = str  # type: ignore[assignment,method-assign]
    parser.read_string(text, source="credentials")
    return parser


def _lookup(parser: configparser.ConfigParser, section: str, key: str) -> str:
    if not parser.has_section(section):
        return ""
    return parser.get(section, key, fallback="").strip()
