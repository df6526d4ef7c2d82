from typing import Mapping, TypeVar

T = TypeVar("T", bound=Mapping)


def resolve_config(config: Mapping, default_config: T) -> T:
    """Overlay known keys of ``config`` on a copy of ``default_config``."""
    _config = dict(default_config)
    if config:
        for key in _config:
            if key in config:
                _config[key] = config[key]
    return _config  # type: ignore[return-value]
