from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

# --- APS payloads ---
# Field names follow the vendor JSON; aliases map camelCase keys.


class VendorModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class AccessToken(VendorModel):
    access_token: str = ""
    token_type: str = "Bearer"
    expires_in: int = 0  # seconds


class BucketOutcome(str, Enum):
    CREATED = "created"
    ALREADY_EXISTS = "already_exists"


class BucketResult(VendorModel):
    bucket_key: str = Field(default="", alias="bucketKey")
    outcome: BucketOutcome = BucketOutcome.CREATED


class UploadSignedData(VendorModel):
    urls: List[str] = Field(default_factory=list)
    upload_key: str = Field(default="", alias="uploadKey")

    @property
    def signed_url(self) -> Optional[str]:
        return self.urls[0] if self.urls else None


class UploadedObject(VendorModel):
    object_id: str = Field(default="", alias="objectId")
    object_key: Optional[str] = Field(default=None, alias="objectKey")
    bucket_key: Optional[str] = Field(default=None, alias="bucketKey")
    size: Optional[int] = None


class TranslateJobResult(VendorModel):
    result: str = ""
    urn: Optional[str] = None


class Manifest(VendorModel):
    """
    Model Derivative manifest.
    progress is "pending", "<n>% complete" or "complete".
    """

    urn: Optional[str] = None
    status: str = "pending"
    progress: str = "pending"
    derivatives: List[Dict[str, Any]] = Field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return self.progress == "complete"


# --- Domain Models ---


@dataclass
class SourceFile:
    """A CAD/BIM file to upload, held in memory."""

    name: str
    content: bytes

    @property
    def extension(self) -> str:
        if "." not in self.name:
            return ""
        return self.name.rsplit(".", 1)[-1]

    @classmethod
    def from_path(cls, path: Path) -> "SourceFile":
        return cls(name=path.name, content=path.read_bytes())


class JobStatus(BaseModel):
    job_id: str
    status: str  # "processing", "completed", "failed", "unknown"
    document_id: Optional[str] = None
    viewables: List[Dict[str, Any]] = Field(default_factory=list)
    error: Optional[str] = None
