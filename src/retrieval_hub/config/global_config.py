"""retrieval_hub.config.global_config

Global configuration loader and accessors.

This module defines a lightweight wrapper around a raw YAML configuration
dictionary, providing validated, cached access to the configuration sections
used by the retrieval hub, plus the typed :class:`RetrievalHubConfig` record
consumed by the hub itself.

Environment variables of the form ``${VAR}`` are expanded recursively in all
string values at load time.

Classes
-------
RetrievalHubConfig
    Typed hub settings (backend, defaults, cache sizing).
GlobalConfig
    Loader and accessor for global project configuration.
"""

import os
from dataclasses import dataclass, fields
from functools import cached_property
from pathlib import Path
from typing import Any, Mapping

import yaml

VECTOR_STORE_ENV_VAR = "VECTOR_STORE_TYPE"


def _expand_env(obj):
    """Recursively expand environment variables in a nested structure.

    This function walks nested dictionaries and lists and applies
    :func:`os.path.expandvars` to any string values, expanding patterns of the
    form ``${VAR}`` using the current process environment.

    Parameters
    ----------
    obj : Any
        Object to expand. Supported types are dictionaries, lists, and strings.
        Other types are returned unchanged.

    Returns
    -------
    Any
        A structure of the same shape as ``obj`` with environment variables
        expanded in all string values.
    """
    if isinstance(obj, dict):
        return {k: _expand_env(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_expand_env(v) for v in obj]
    if isinstance(obj, str):
        return os.path.expandvars(obj)
    return obj


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "y", "on"}
    return bool(value)


@dataclass(frozen=True)
class RetrievalHubConfig:
    """Settings for a :class:`~retrieval_hub.pipelines.retrieval_hub.RetrievalHub`.

    Attributes
    ----------
    vector_store_type : str
        Backend kind passed to the vector store factory.
    default_top_k : int
        Result limit applied when a query does not set ``top_k``.
    default_chunk_size : int
        Chunk size applied when indexing without explicit options.
    default_chunk_overlap : int
        Chunk overlap applied when indexing without explicit options.
    enable_cache : bool
        Whether search results are cached.
    cache_size : int
        Maximum number of cached queries.
    cache_ttl_ms : int
        Lifetime of a cached result in milliseconds.
    dimensions : int
        Embedding dimensionality of the store.
    """

    vector_store_type: str = "memory"
    default_top_k: int = 5
    default_chunk_size: int = 512
    default_chunk_overlap: int = 128
    enable_cache: bool = True
    cache_size: int = 1000
    cache_ttl_ms: int = 3_600_000
    dimensions: int = 384

    _ALIASES = {
        "vectorStoreType": "vector_store_type",
        "defaultTopK": "default_top_k",
        "defaultChunkSize": "default_chunk_size",
        "defaultChunkOverlap": "default_chunk_overlap",
        "enableCache": "enable_cache",
        "cacheSize": "cache_size",
        "cacheTTL": "cache_ttl_ms",
        "cache_ttl": "cache_ttl_ms",
    }

    _POSITIVE_INTS = ("default_top_k", "default_chunk_size", "cache_size", "cache_ttl_ms", "dimensions")

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any] | None) -> "RetrievalHubConfig":
        """Build settings from a mapping with snake_case or camelCase keys.

        Unknown keys are ignored.

        Raises
        ------
        TypeError
            If ``raw`` is not a mapping.
        ValueError
            If a numeric setting is not a positive integer, or the chunk
            overlap is negative.
        """
        if raw is None:
            raw = {}
        if not isinstance(raw, Mapping):
            raise TypeError(f"'retrieval_hub' must be a mapping, got {type(raw)}.")

        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in raw.items():
            name = cls._ALIASES.get(key, key)
            if name in known and value is not None:
                kwargs[name] = value

        for name in cls._POSITIVE_INTS:
            if name in kwargs:
                try:
                    kwargs[name] = int(kwargs[name])
                except (TypeError, ValueError):
                    raise ValueError(f"'retrieval_hub.{name}' must be a positive integer.") from None
                if kwargs[name] <= 0:
                    raise ValueError(f"'retrieval_hub.{name}' must be a positive integer.")

        if "default_chunk_overlap" in kwargs:
            try:
                kwargs["default_chunk_overlap"] = int(kwargs["default_chunk_overlap"])
            except (TypeError, ValueError):
                raise ValueError("'retrieval_hub.default_chunk_overlap' must be a non-negative integer.") from None
            if kwargs["default_chunk_overlap"] < 0:
                raise ValueError("'retrieval_hub.default_chunk_overlap' must be a non-negative integer.")

        if "enable_cache" in kwargs:
            kwargs["enable_cache"] = _as_bool(kwargs["enable_cache"])
        if "vector_store_type" in kwargs:
            kwargs["vector_store_type"] = str(kwargs["vector_store_type"]).strip().lower()

        return cls(**kwargs)

    @property
    def cache_ttl_seconds(self) -> float:
        return self.cache_ttl_ms / 1000.0


class GlobalConfig:
    """Loader and accessor for global project configuration.

    This class wraps a raw configuration dictionary (typically loaded from YAML)
    and exposes validated, cached accessors for the configuration sections
    used by the retrieval hub.

    Parameters
    ----------
    raw : dict
        Raw configuration data as loaded from a YAML file.
    config_path : Path or None, optional
        Absolute path of the file ``raw`` was loaded from.
    """

    def __init__(
            self,
            raw: dict,
            config_path: Path | None = None,
        ):
        self.raw = raw or {}
        # Absolute path to the loaded config file (if known). Used for resolving
        # relative paths in a packaging/Docker-safe way.
        self.config_path = config_path

    @classmethod
    def load(
            cls,
            path: str | Path,
        ) -> "GlobalConfig":
        """Load configuration from a YAML file.

        Parameters
        ----------
        path : str or Path
            Path to the YAML configuration file.

        Returns
        -------
        GlobalConfig
            An instance initialised with the loaded and environment-expanded data.

        Notes
        -----
        All string values in the loaded YAML are processed with recursive
        environment-variable expansion (``${VAR}``) via :func:`os.path.expandvars`.
        """
        cfg_path = Path(path).expanduser().resolve()
        with cfg_path.open("r") as f:
            data = yaml.safe_load(f)
        data = _expand_env(data or {})
        return cls(data, config_path=cfg_path)

    @cached_property
    def retrieval_hub(self) -> RetrievalHubConfig:
        """Return the typed hub settings.

        The ``VECTOR_STORE_TYPE`` environment variable, when set, overrides
        ``retrieval_hub.vector_store_type``.

        Returns
        -------
        RetrievalHubConfig
            Settings built from the ``retrieval_hub`` section, or defaults if
            the section is absent.

        Raises
        ------
        TypeError
            If ``retrieval_hub`` is not a mapping.
        ValueError
            If a numeric setting is invalid.
        """
        section = dict(self._section("retrieval_hub"))
        override = os.environ.get(VECTOR_STORE_ENV_VAR)
        if override:
            section["vector_store_type"] = override
        return RetrievalHubConfig.from_mapping(section)

    @cached_property
    def embedder(self) -> dict:
        """Return the embedder configuration section.

        Returns
        -------
        dict
            The ``embedder`` section of the configuration, or an empty dict if
            not present (which selects the hashing embedder).
        """
        return self._section("embedder")

    @cached_property
    def reranker(self) -> dict:
        """Return the reranker configuration section.

        Returns
        -------
        dict
            The ``reranker`` section of the configuration, or an empty dict if
            not present.
        """
        return self._section("reranker")

    @cached_property
    def logging(self) -> dict:
        """Return the logging configuration section.

        Returns
        -------
        dict
            The ``logging`` section, with ``level`` defaulting to ``"INFO"``.
        """
        section = dict(self._section("logging"))
        section.setdefault("level", "INFO")
        return section

    def _section(self, name: str) -> dict:
        section = self.raw.get(name)
        if section is None:
            return {}
        if not isinstance(section, dict):
            raise TypeError(f"'{name}' must be a mapping, got {type(section)}.")
        return section
