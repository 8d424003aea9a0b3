from pydantic import BaseModel, ConfigDict, Field

from aduib_naming.utils.net_utils import NetUtils


class Instance(BaseModel):
    """An instance of a remotely-accessible service on the network."""

    model_config = ConfigDict(frozen=True)

    local: bool = False
    id: str
    name: str
    host: str
    port: int = Field(ge=0, le=65535)
    tags: tuple[str, ...] = ()

    @property
    def addr(self) -> str:
        """Returns the instance ``host:port``."""
        return NetUtils.join_host_port(self.host, self.port)

    def has_tags(self, *tags: str) -> bool:
        """Tells whether the instance carries every given tag."""
        return all(tag in self.tags for tag in tags)


class Registration(BaseModel):
    """Describes a service instance to add to the catalogue."""

    id: str | None = None
    name: str
    addr: str
    port: int = Field(ge=0, le=65535)
    tags: tuple[str, ...] = ()
