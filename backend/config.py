import os
from collections.abc import Callable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator
from starlette.requests import Request

from errors import ConfigInvalid
from filesystem import FileSystem

DEFAULT_INDEX = "index.html"

# Tried left to right; the first variant present on disk wins
DEFAULT_ENCODINGS = ("br", "gzip")
DEFAULT_EXTENSIONS = (".br", ".gz")


def default_skipper(_request: Request) -> bool:
    return False


class StaticConfig(BaseModel):
    """Per-mount settings for precompressed static serving.

    Invalid options raise ConfigInvalid when the instance is constructed.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    # Directory the documents are served from. Empty means the working directory.
    root: str = "."
    # Document served for directories and for "/"
    index: str = DEFAULT_INDEX
    # Serve the root index for paths nothing else handles (SPA routing)
    html5: bool = False
    # Parallel lists: encodings[i] is served from files ending in extensions[i]
    encodings: tuple[str, ...] = DEFAULT_ENCODINGS
    extensions: tuple[str, ...] = DEFAULT_EXTENSIONS
    # Drop the last segment of `prefix` from the file path when the request path
    # ends with that same segment. Only the last segment is compared, so
    # "/assets/static" behaves like "/static".
    ignore_base: bool = False
    # URL prefix the documents are mounted under; "" serves from "/"
    prefix: str = ""
    skipper: Callable[[Request], bool] = default_skipper
    # Defaults to the local directory at `root`
    filesystem: FileSystem | None = None

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except ValidationError as exc:
            raise ConfigInvalid(str(exc)) from exc

    @field_validator("root", mode="before")
    @classmethod
    def root_defaults_to_cwd(cls, v: Any) -> Any:
        return v or "."

    @field_validator("index", mode="before")
    @classmethod
    def index_defaults(cls, v: Any) -> Any:
        return v or DEFAULT_INDEX

    @field_validator("prefix")
    @classmethod
    def normalize_prefix(cls, v: str) -> str:
        stripped = v.strip("/")
        return f"/{stripped}" if stripped else ""

    @model_validator(mode="after")
    def check_encoding_table(self) -> "StaticConfig":
        if len(self.encodings) != len(self.extensions):
            raise ValueError(
                f"{len(self.encodings)} encodings but {len(self.extensions)} extensions"
            )
        if not all(self.encodings) or not all(self.extensions):
            raise ValueError("Encoding tokens and extensions must not be empty")
        return self

    @property
    def encoding_table(self) -> list[tuple[str, str]]:
        return list(zip(self.encodings, self.extensions))


def default_static_config() -> StaticConfig:
    """Return a fresh default configuration."""
    return StaticConfig()


def make_static_config(**options: Any) -> StaticConfig:
    """Build a validated configuration, raising ConfigInvalid on bad options."""
    return StaticConfig(**options)


def _split_list(value: str) -> tuple[str, ...]:
    return tuple(item.strip() for item in value.split(",") if item.strip())


def load_static_config(environ: Mapping[str, str] | None = None) -> StaticConfig:
    """Build a configuration from STATIC_* environment variables."""
    if environ is None:
        environ = os.environ

    options: dict[str, Any] = {}
    for field, var in [
        ("root", "STATIC_ROOT"),
        ("index", "STATIC_INDEX"),
        ("html5", "STATIC_HTML5"),
        ("ignore_base", "STATIC_IGNORE_BASE"),
        ("prefix", "STATIC_PREFIX"),
    ]:
        if var in environ:
            options[field] = environ[var]

    if "STATIC_ENCODINGS" in environ:
        options["encodings"] = _split_list(environ["STATIC_ENCODINGS"])
    if "STATIC_EXTENSIONS" in environ:
        options["extensions"] = _split_list(environ["STATIC_EXTENSIONS"])

    return make_static_config(**options)
