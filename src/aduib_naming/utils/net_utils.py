import ipaddress


class NetUtils:
    @staticmethod
    def parse_ip(value: str) -> ipaddress.IPv4Address | ipaddress.IPv6Address | None:
        """Return the parsed IP address, or None if ``value`` is not an IP literal."""
        try:
            return ipaddress.ip_address(value)
        except ValueError:
            return None

    @staticmethod
    def format_ip(value: str) -> str | None:
        """Return an IPv4 literal as is and an IPv6 literal enclosed in brackets.

        Returns None when ``value`` is not a textual IP address.
        """
        ip = NetUtils.parse_ip(value)
        if ip is None:
            return None
        if ip.version == 4:
            return value
        return f"[{value}]"

    @staticmethod
    def join_host_port(host: str, port: int | str) -> str:
        """Combine host and port into ``host:port``, bracketing hosts that contain a colon."""
        if ":" in host and not host.startswith("["):
            return f"[{host}]:{port}"
        return f"{host}:{port}"

    @staticmethod
    def split_host_port(hostport: str) -> tuple[str, str]:
        """Split ``host:port`` or ``[host]:port`` into host and port.

        Raises:
            ValueError: The string has no port separator or is malformed.
        """
        if hostport.startswith("["):
            end = hostport.find("]")
            if end < 0:
                raise ValueError(f"missing ']' in address {hostport}")
            host = hostport[1:end]
            rest = hostport[end + 1:]
            if not rest.startswith(":"):
                raise ValueError(f"missing port in address {hostport}")
            port = rest[1:]
            if ":" in port:
                raise ValueError(f"too many colons in address {hostport}")
            return host, port
        if ":" not in hostport:
            raise ValueError(f"missing port in address {hostport}")
        host, port = hostport.rsplit(":", 1)
        if ":" in host:
            raise ValueError(f"too many colons in address {hostport}")
        if "[" in host or "]" in host or "[" in port or "]" in port:
            raise ValueError(f"unexpected bracket in address {hostport}")
        return host, port
