from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, List, Union


class SingleSource(BaseModel):
    """a hub value written as a single url string."""
    model_config = ConfigDict(frozen=True)

    url: str

    @property
    def urls(self) -> List[str]:
        return [self.url]


class ManySources(BaseModel):
    """a hub value written as a list of url strings."""
    model_config = ConfigDict(frozen=True)

    urls: List[str] = Field(default_factory=list)


SourceValue = Union[SingleSource, ManySources]


class RegistryEntry(BaseModel):
    """one (type, url) pair from the flattened hub file."""
    model_config = ConfigDict(frozen=True)

    type: str
    source_url: str


class GithubRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    owner: str
    repo: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


class RankedEntry(BaseModel):
    """a registry entry with its popularity and local install status."""
    model_config = ConfigDict(frozen=True)

    rank: int
    type: str
    source_url: str
    stars: int = Field(default=0, ge=0)
    installed: bool = False


class PopularityResult(BaseModel):
    """star counts keyed by source url, plus which lookup path was used."""
    stars: Dict[str, int] = Field(default_factory=dict)
    bulk_attempted: bool = False
    bulk_failed: bool = False


class CatalogReport(BaseModel):
    rows: List[RankedEntry] = Field(default_factory=list)
    credential_missing: bool = False
    bulk_failed: bool = False
