import configparser
import os
from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union, get_args, get_origin

from pydantic import BaseModel, SecretStr
from pydantic_settings import BaseSettings

MASK = "********"

KeyPath = Tuple[str, ...]


class DOCFACADE_DIR_PATHS(BaseModel):
    ROOT: str
    LOGGER_DIR: str
    STRUCT_LOGGER_DIR: str


class DOCFACADE_LOGGER(BaseModel):
    USE_STRUCTLOG: bool = False


class DOCFACADE_MONGO(BaseModel):
    URI: SecretStr
    CONNECT_TIMEOUT: float = 10.0
    SERVER_SELECTION_TIMEOUT: float = 30.0


def _expand_home(value: Any) -> Any:
    """Expand a leading ``~`` in strings, recursing into containers."""
    if isinstance(value, str):
        return os.path.expanduser(value) if value.startswith("~") else value
    if isinstance(value, dict):
        return {k: _expand_home(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return type(value)(_expand_home(v) for v in value)
    return value


def load_ini_as_dict(ini_path: Path) -> Dict[str, Any]:
    """
    Read an INI file into ``{SECTION: {KEY: value}}``.

    Section and key names are upper-cased, ``${key}`` references are interpolated within a section and a leading
    ``~`` is expanded. A missing file yields an empty dict.

    Example:
        .. code-block:: ini

            [docfacade_mongo]
            uri = mongodb://localhost:27017

        .. code-block:: python

            load_ini_as_dict(Path("config.ini"))["DOCFACADE_MONGO"]["URI"]
    """
    if not ini_path.exists():
        return {}

    parser = configparser.ConfigParser(interpolation=configparser.ExtendedInterpolation())
    parser.optionxform = str
    parser.read(ini_path)
    return {
        section.upper(): {key.upper(): _expand_home(value) for key, value in parser[section].items()}
        for section in parser.sections()
    }


def load_ini_settings() -> Dict[str, Any]:
    """Defaults packaged next to this module."""
    return load_ini_as_dict(Path(__file__).parent / "config.ini")


class CoreSettings(BaseSettings):
    """Settings shared by every docfacade component.

    Later sources lose: constructor kwargs, then environment variables (``DOCFACADE_MONGO__URI=...``), then ``.env``,
    then the packaged ``config.ini``.
    """

    DOCFACADE_DIR_PATHS: DOCFACADE_DIR_PATHS
    DOCFACADE_LOGGER: DOCFACADE_LOGGER
    DOCFACADE_MONGO: DOCFACADE_MONGO

    model_config = {"env_nested_delimiter": "__"}

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            lambda: _expand_home(env_settings()),
            dotenv_settings,
            load_ini_settings,
            file_secret_settings,
        )


SettingsLike = Union[
    Dict[str, Any],
    List[Union[Dict[str, Any], BaseSettings, BaseModel]],
    BaseSettings,
    BaseModel,
    None,
]


def _merge(base: dict, override: dict) -> dict:
    """Merge ``override`` into ``base`` in place, section by section."""
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = deepcopy(value)
    return base


def _parse_env_value(raw: str) -> Any:
    if raw.lower() in ("true", "false"):
        return raw.lower() == "true"
    for cast in (int, float):
        try:
            return cast(raw)
        except ValueError:
            pass
    return raw


def _env_overlay(data: dict, delimiter: str = "__") -> dict:
    """Return a copy of ``data`` with every ``SECTION__KEY`` environment variable applied."""
    result = deepcopy(data)
    for name, raw in os.environ.items():
        keys = [part.strip().upper() for part in name.split(delimiter) if part.strip()]
        if delimiter not in name or not keys:
            continue
        node = result
        for key in keys[:-1]:
            if not isinstance(node.get(key), dict):
                node[key] = {}
            node = node[key]
        node[keys[-1]] = _parse_env_value(raw)
    return result


def _is_secret(annotation: Any) -> bool:
    if get_origin(annotation) is Union:
        return SecretStr in get_args(annotation)
    return annotation is SecretStr


def _nested_model(annotation: Any) -> Optional[type[BaseModel]]:
    candidates = get_args(annotation) if get_origin(annotation) is Union else (annotation,)
    return next((c for c in candidates if isinstance(c, type) and issubclass(c, BaseModel)), None)


def _secret_fields(model_cls: type[BaseModel], prefix: KeyPath = ()) -> Iterator[KeyPath]:
    """Yield the path of every ``SecretStr`` field declared on ``model_cls`` or its nested models."""
    for name, field in model_cls.model_fields.items():
        if _is_secret(field.annotation):
            yield prefix + (name,)
        elif (nested := _nested_model(field.annotation)) is not None:
            yield from _secret_fields(nested, prefix + (name,))


class _AttrView:
    """Read-only attribute access over a config section: ``config.DOCFACADE_MONGO.URI``."""

    def __init__(self, data: Dict[str, Any]):
        self._data = data

    @staticmethod
    def _wrap(value: Any) -> Any:
        return _AttrView(value) if isinstance(value, dict) else value

    def __getattr__(self, name: str):
        if name not in self._data:
            raise AttributeError(f"No such attribute: {name}")
        return self._wrap(self._data[name])

    def __getitem__(self, key: str):
        return self._wrap(self._data[key])

    def __repr__(self) -> str:
        return f"_AttrView({self._data!r})"


class Config(dict):
    """
    Merged, string-valued view over settings objects and plain dicts.

    Items are merged in order, later ones winning per key. Unless ``apply_env`` is False, ``SECTION__KEY``
    environment variables are applied last. Every leaf is stored as a string. Fields declared as ``SecretStr`` are
    replaced by a mask and kept aside, readable only through ``get_secret``.

    Args:
        extra_settings: A dict, a pydantic settings/model instance, or a list of these.
        apply_env: Whether to apply environment variable overrides.

    Example:
        >>> config = Config(CoreSettings())
        >>> config.DOCFACADE_MONGO.URI
        '********'
        >>> config.get_secret("DOCFACADE_MONGO", "URI")
        'mongodb://localhost:27017'
    """

    def __init__(self, extra_settings: SettingsLike = None, *, apply_env: bool = True):
        self._secret_paths: set[KeyPath] = set()
        self._secrets: Dict[KeyPath, str] = {}

        merged: Dict[str, Any] = {}
        for item in extra_settings if isinstance(extra_settings, list) else [extra_settings]:
            if isinstance(item, BaseModel):
                self._secret_paths.update(_secret_fields(type(item)))
                _merge(merged, item.model_dump())
            elif isinstance(item, dict):
                _merge(merged, item)

        if apply_env:
            merged = _env_overlay(merged)
        super().__init__(self._render(merged, ()))

    def __getattr__(self, name: str):
        if name not in self:
            raise AttributeError(f"No such attribute: {name}")
        return _AttrView._wrap(self[name])

    def _render(self, value: Any, path: KeyPath) -> Any:
        """Stringify leaves, diverting secrets into ``self._secrets``."""
        if isinstance(value, dict):
            return {k: self._render(v, path + (k,)) for k, v in value.items()}
        if isinstance(value, (list, tuple, set)):
            return [self._render(v, path) for v in value]
        if isinstance(value, SecretStr):
            self._secrets[path] = value.get_secret_value()
            return MASK
        text = str(value)
        if path in self._secret_paths:
            self._secrets[path] = text
            return MASK
        return _expand_home(text)

    def _mask_path(self, path: KeyPath):
        node = self
        for key in path[:-1]:
            node = node.get(key)
            if not isinstance(node, dict):
                return
        leaf = path[-1]
        if leaf in node and node[leaf] != MASK:
            self._secrets[path] = node[leaf]
            node[leaf] = MASK

    def get_secret(self, *path: str) -> Optional[str]:
        """Unmasked value of a secret, e.g. ``get_secret("DOCFACADE_MONGO", "URI")``."""
        return self._secrets.get(path)

    def to_revealed_strings(self) -> Dict[str, Any]:
        """Plain dict copy with the real secret values put back."""
        data = deepcopy(dict(self))
        for path, secret in self._secrets.items():
            node = data
            for key in path[:-1]:
                node = node.setdefault(key, {})
            node[path[-1]] = secret
        return data

    def clone_with_overrides(self, *overrides: SettingsLike) -> "Config":
        """New Config with ``overrides`` merged on top. Secrets stay masked and ``self`` is left untouched."""
        items: List[Any] = [self.to_revealed_strings()]
        for override in overrides:
            if isinstance(override, list):
                items.extend(override)
            elif override is not None:
                items.append(override)
        clone = Config(items, apply_env=False)
        for path in self._secret_paths | set(self._secrets):
            clone._secret_paths.add(path)
            clone._mask_path(path)
        return clone


class CoreConfig(Config):
    """
    ``Config`` seeded with ``CoreSettings``.

    ``extra_settings`` are merged on top. Environment overrides are not applied a second time since ``CoreSettings``
    already read them.

    Example:
        .. code-block:: python

            from docfacade.core.config import CoreConfig

            timeout = float(CoreConfig().DOCFACADE_MONGO.CONNECT_TIMEOUT)
    """

    def __init__(self, extra_settings: SettingsLike = None):
        if extra_settings is None:
            extra_settings = []
        elif not isinstance(extra_settings, list):
            extra_settings = [extra_settings]
        super().__init__([CoreSettings(), *extra_settings], apply_env=False)
