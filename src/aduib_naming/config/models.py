from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, cast

from aduib_naming.exceptions import ConfigError

__all__ = [
    "CatalogConfig",
    "DiscoConfig",
    "DnsConfig",
    "NamingConfig",
]


def _ensure_mapping(value: Any, field_name: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ConfigError(message=f"{field_name} must be a mapping")
    return cast(Mapping[str, Any], value)


def _coerce_bool(value: Any, field_name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return bool(value)
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"1", "true", "yes", "on"}:
            return True
        if normalized in {"0", "false", "no", "off"}:
            return False
    raise ConfigError(message=f"{field_name} must be a bool")


def _coerce_float(value: Any, field_name: str) -> float:
    if isinstance(value, bool):
        raise ConfigError(message=f"{field_name} must be a float")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError as exc:
            raise ConfigError(message=f"{field_name} must be a float", cause=exc) from exc
    raise ConfigError(message=f"{field_name} must be a float")


def _coerce_positive_float(value: Any, field_name: str) -> float:
    result = _coerce_float(value, field_name)
    if result <= 0:
        raise ConfigError(message=f"{field_name} must be positive")
    return result


def _coerce_str(value: Any, field_name: str) -> str:
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    raise ConfigError(message=f"{field_name} must be a string")


def _coerce_str_list(value: Any, field_name: str) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    if isinstance(value, Sequence):
        return [_coerce_str(item, field_name) for item in value]
    raise ConfigError(message=f"{field_name} must be a list of strings")


def _coerce_nameservers(value: Any, field_name: str) -> list[tuple[str, int]]:
    nameservers: list[tuple[str, int]] = []
    for entry in _coerce_str_list(value, field_name):
        host, sep, port = entry.rpartition(":")
        if sep and host and "]" not in port and (host.startswith("[") or ":" not in host):
            try:
                nameservers.append((host.strip("[]"), int(port)))
            except ValueError as exc:
                raise ConfigError(message=f"{field_name} has an invalid port: {entry}", cause=exc) from exc
        else:
            nameservers.append((entry.strip("[]"), 53))
    return nameservers


@dataclass
class DnsConfig:
    """Settings of the DNS resolver.

    Args:
        freq_seconds: Interval between two DNS polls.
        srv_service: Service name of the SRV lookup (``_<service>._<proto>.<host>``).
        srv_proto: Protocol of the SRV lookup.
        default_port: Port used when the target has none.
        nameservers: ``(host, port)`` pairs; resolv.conf is used when empty.
        timeout_seconds: Timeout of a single SRV query.
        use_tcp: Send SRV queries over TCP.
    """

    freq_seconds: float = 30 * 60.0
    srv_service: str = "spine"
    srv_proto: str = "tcp"
    default_port: str = "443"
    nameservers: list[tuple[str, int]] = field(default_factory=list)
    timeout_seconds: float = 2.0
    use_tcp: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> DnsConfig:
        data = _ensure_mapping(data, "dns")
        config = cls()
        if "freq_seconds" in data:
            config.freq_seconds = _coerce_positive_float(data["freq_seconds"], "dns.freq_seconds")
        if "srv_service" in data:
            config.srv_service = _coerce_str(data["srv_service"], "dns.srv_service")
        if "srv_proto" in data:
            config.srv_proto = _coerce_str(data["srv_proto"], "dns.srv_proto")
        if "default_port" in data:
            config.default_port = _coerce_str(data["default_port"], "dns.default_port")
        if "nameservers" in data:
            config.nameservers = _coerce_nameservers(data["nameservers"], "dns.nameservers")
        if "timeout_seconds" in data:
            config.timeout_seconds = _coerce_positive_float(data["timeout_seconds"], "dns.timeout_seconds")
        if "use_tcp" in data:
            config.use_tcp = _coerce_bool(data["use_tcp"], "dns.use_tcp")
        return config


@dataclass
class DiscoConfig:
    """Settings of the disco resolver.

    Args:
        tags: Tags every resolved instance must carry, on top of the URI ``tag`` parameters.
    """

    tags: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> DiscoConfig:
        data = _ensure_mapping(data, "disco")
        return cls(tags=_coerce_str_list(data.get("tags"), "disco.tags"))


@dataclass
class CatalogConfig:
    """Settings of the HTTP catalogue resolver, registered under ``catalog`` when a URL is set.

    Args:
        url: Base address of the catalogue; empty disables the resolver.
        interval_seconds: Interval between two catalogue polls.
        timeout_seconds: Request timeout.
        tags: Tags every resolved instance must carry.
    """

    url: str = ""
    interval_seconds: float = 30.0
    timeout_seconds: float = 5.0
    tags: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CatalogConfig:
        data = _ensure_mapping(data, "catalog")
        config = cls(tags=_coerce_str_list(data.get("tags"), "catalog.tags"))
        if data.get("url"):
            config.url = _coerce_str(data["url"], "catalog.url")
        if "interval_seconds" in data:
            config.interval_seconds = _coerce_positive_float(data["interval_seconds"], "catalog.interval_seconds")
        if "timeout_seconds" in data:
            config.timeout_seconds = _coerce_positive_float(data["timeout_seconds"], "catalog.timeout_seconds")
        return config


@dataclass
class NamingConfig:
    """Top-level naming configuration."""

    default_scheme: str = "passthrough"
    dns: DnsConfig = field(default_factory=DnsConfig)
    disco: DiscoConfig = field(default_factory=DiscoConfig)
    catalog: CatalogConfig = field(default_factory=CatalogConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> NamingConfig:
        if data is None:
            return cls()
        data = _ensure_mapping(data, "config")
        config = cls()
        if "default_scheme" in data:
            scheme = _coerce_str(data["default_scheme"], "default_scheme").lower()
            if not scheme:
                raise ConfigError(message="default_scheme must not be empty")
            config.default_scheme = scheme
        if data.get("dns") is not None:
            config.dns = DnsConfig.from_dict(data["dns"])
        if data.get("disco") is not None:
            config.disco = DiscoConfig.from_dict(data["disco"])
        if data.get("catalog") is not None:
            config.catalog = CatalogConfig.from_dict(data["catalog"])
        return config

    def to_dict(self) -> dict[str, Any]:
        return {
            "default_scheme": self.default_scheme,
            "dns": {
                "freq_seconds": self.dns.freq_seconds,
                "srv_service": self.dns.srv_service,
                "srv_proto": self.dns.srv_proto,
                "default_port": self.dns.default_port,
                "nameservers": [f"{host}:{port}" for host, port in self.dns.nameservers],
                "timeout_seconds": self.dns.timeout_seconds,
                "use_tcp": self.dns.use_tcp,
            },
            "disco": {"tags": list(self.disco.tags)},
            "catalog": {
                "url": self.catalog.url,
                "interval_seconds": self.catalog.interval_seconds,
                "timeout_seconds": self.catalog.timeout_seconds,
                "tags": list(self.catalog.tags),
            },
        }
