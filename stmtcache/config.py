"""
Executor settings

从 YAML 配置文件加载执行器配置，支持环境变量替换。

Settings file layout (all keys optional)::

    cache_enabled: true
    local_cache_scope: session        # session | statement
    environment_id: ${STMTCACHE_ENVIRONMENT:development}
    database_id: null
    database_id_properties:
      SQLite: sqlite
      PostgreSQL: postgres
    blocking_shared_cache: false
    lock_timeout_seconds: null
    shared_cache:
      max_size: 1024
      ttl_seconds: 0
      eviction_policy: lru
      enable_stats: true

Environment overrides win over the file:
STMTCACHE_CACHE_ENABLED, STMTCACHE_LOCAL_CACHE_SCOPE, STMTCACHE_ENVIRONMENT.
"""

import json
import os
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

import yaml

from .cache.cache_interface import CacheConfig
from .exceptions import ConfigurationError
from .log import log

__all__ = [
    "LocalCacheScope",
    "ExecutorSettings",
    "expand_env_vars",
    "load_settings",
    "get_settings",
    "reload_settings",
    "DEFAULT_CONFIG_PATH",
]

DEFAULT_CONFIG_PATH = Path("config") / "stmtcache.yaml"

_ENV_PATTERN = re.compile(r'\$\{([A-Za-z_][A-Za-z0-9_]*?)(?::([^}]*))?\}')
_TRUE_VALUES = ("true", "yes", "on")
_FALSE_VALUES = ("false", "no", "off")


class LocalCacheScope(Enum):
    """How long first-level cache entries live"""
    SESSION = "session"
    STATEMENT = "statement"

    @classmethod
    def parse(cls, value: Union[str, "LocalCacheScope"]) -> "LocalCacheScope":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ConfigurationError(
                f"Unknown local_cache_scope {value!r}, expected one of: "
                + ", ".join(scope.value for scope in cls)
            )


@dataclass
class ExecutorSettings:
    """
    执行器配置

    Attributes:
        cache_enabled: Wrap executors with the shared (second level) cache
        local_cache_scope: SESSION keeps entries until commit / rollback / write,
            STATEMENT drops them when the outermost statement finishes
        environment_id: Folded into every cache key when set
        database_id: Vendor id of the backing store, resolved for the host
            application (statement selection); executors never read it
        database_id_properties: {product name substring: database id}
        shared_cache: Settings for shared caches built by the factory
        blocking_shared_cache: Wrap shared caches with per-key locking
        lock_timeout_seconds: Wait limit of the per-key locks (None: forever)
    """
    cache_enabled: bool = True
    local_cache_scope: LocalCacheScope = LocalCacheScope.SESSION
    environment_id: Optional[str] = None
    database_id: Optional[str] = None
    database_id_properties: Dict[str, str] = field(default_factory=dict)
    shared_cache: CacheConfig = field(default_factory=CacheConfig)
    blocking_shared_cache: bool = False
    lock_timeout_seconds: Optional[float] = None

    def validate(self) -> List[str]:
        """Return a list of problems; empty when the settings are usable"""
        problems = []
        if not isinstance(self.local_cache_scope, LocalCacheScope):
            problems.append(f"local_cache_scope must be a LocalCacheScope, got {self.local_cache_scope!r}")
        if self.lock_timeout_seconds is not None and self.lock_timeout_seconds <= 0:
            problems.append("lock_timeout_seconds must be positive when set")
        if self.lock_timeout_seconds is not None and not self.blocking_shared_cache:
            problems.append("lock_timeout_seconds has no effect unless blocking_shared_cache is enabled")
        problems.extend(self.shared_cache.validate())
        return problems

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExecutorSettings":
        try:
            timeout = data.get("lock_timeout_seconds")
            environment_id = data.get("environment_id")
            database_id = data.get("database_id")
            return cls(
                cache_enabled=_to_bool(data.get("cache_enabled", True)),
                local_cache_scope=LocalCacheScope.parse(data.get("local_cache_scope", "session")),
                environment_id=str(environment_id) if environment_id not in (None, "") else None,
                database_id=str(database_id) if database_id not in (None, "") else None,
                database_id_properties={
                    str(k): str(v) for k, v in (data.get("database_id_properties") or {}).items()
                },
                shared_cache=CacheConfig.from_dict(data.get("shared_cache") or {}),
                blocking_shared_cache=_to_bool(data.get("blocking_shared_cache", False)),
                lock_timeout_seconds=float(timeout) if timeout not in (None, "") else None,
            )
        except (TypeError, ValueError, AttributeError) as e:
            raise ConfigurationError(f"Invalid executor settings: {e}")


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    text = str(value).strip().lower()
    if text in _TRUE_VALUES or text == "1":
        return True
    if text in _FALSE_VALUES or text == "0":
        return False
    raise ValueError(f"not a boolean: {value!r}")


def expand_env_vars(value: Any) -> Any:
    """
    递归展开环境变量

    支持语法：${VAR_NAME:default_value}

    Examples:
        >>> os.environ["TEST_VAR"] = "hello"
        >>> expand_env_vars("${TEST_VAR:world}")
        'hello'
        >>> expand_env_vars("${MISSING_VAR:world}")
        'world'
        >>> expand_env_vars("${BOOL_VAR:true}")
        True
        >>> expand_env_vars("${INT_VAR:42}")
        42
    """
    if isinstance(value, str):
        if not _ENV_PATTERN.search(value):
            return value

        def replacer(match):
            default_value = match.group(2) if match.group(2) is not None else ""
            return os.getenv(match.group(1), default_value)

        result = _ENV_PATTERN.sub(replacer, value)

        # 类型转换
        lowered = result.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        if lowered in ("", "null", "none", "~"):
            return None

        try:
            if "." in result:
                return float(result)
            return int(result)
        except ValueError:
            pass

        if result.startswith("[") and result.endswith("]"):
            try:
                return json.loads(result)
            except ValueError:
                pass

        return result

    elif isinstance(value, list):
        return [expand_env_vars(item) for item in value]

    elif isinstance(value, dict):
        return {key: expand_env_vars(val) for key, val in value.items()}

    return value


def _apply_env_overrides(data: Dict[str, Any]) -> Dict[str, Any]:
    overrides = {
        "cache_enabled": os.getenv("STMTCACHE_CACHE_ENABLED"),
        "local_cache_scope": os.getenv("STMTCACHE_LOCAL_CACHE_SCOPE"),
        "environment_id": os.getenv("STMTCACHE_ENVIRONMENT"),
    }
    for key, value in overrides.items():
        if value is not None and value != "":
            data[key] = value
    return data


def _default_config_path() -> Path:
    return Path(os.getenv("STMTCACHE_CONFIG", str(DEFAULT_CONFIG_PATH)))


def load_settings(
    config_path: Union[str, Path, None] = None,
    connect: Optional[Callable[[], Any]] = None,
) -> ExecutorSettings:
    """
    从 YAML 文件加载执行器配置

    Args:
        config_path: 配置文件路径（默认为 $STMTCACHE_CONFIG 或 config/stmtcache.yaml）
        connect: Optional connection factory; when given and no database_id is
            configured, the id is detected from the connection's driver

    Returns:
        ExecutorSettings; defaults when the file does not exist

    Raises:
        ConfigurationError: the file is not valid YAML or holds invalid values
    """
    path = Path(config_path) if config_path is not None else _default_config_path()

    raw: Dict[str, Any] = {}
    if path.exists():
        try:
            with open(path, "r", encoding="utf-8") as f:
                loaded = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Cannot parse settings file {path}: {e}")
        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigurationError(f"Settings file {path} must contain a mapping")
        raw = expand_env_vars(loaded)
        log.debug(f"Loaded settings from {path}", tag="CONFIG")
    else:
        log.debug(f"Settings file {path} not found, using defaults", tag="CONFIG")

    settings = ExecutorSettings.from_dict(_apply_env_overrides(raw))

    problems = settings.validate()
    if problems:
        raise ConfigurationError("Invalid executor settings: " + "; ".join(problems))

    if connect is not None and settings.database_id is None:
        from .database_id import VendorDatabaseIdProvider

        provider = VendorDatabaseIdProvider(settings.database_id_properties)
        settings.database_id = provider.get_database_id(connect)

    return settings


# 全局配置缓存
_settings_cache: Optional[ExecutorSettings] = None


def get_settings() -> ExecutorSettings:
    """Process default settings, loaded once from the default path"""
    global _settings_cache

    if _settings_cache is None:
        _settings_cache = load_settings()
    return _settings_cache


def reload_settings(config_path: Union[str, Path, None] = None) -> ExecutorSettings:
    """重新加载配置（修改配置文件后调用）"""
    global _settings_cache
    _settings_cache = load_settings(config_path)
    return _settings_cache
