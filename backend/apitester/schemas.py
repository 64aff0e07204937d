from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import (
    AfterValidator,
    AnyHttpUrl,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
)

HttpMethod = Literal["GET", "POST", "PUT", "DELETE", "PATCH"]

_http_url = TypeAdapter(AnyHttpUrl)


def _check_url(value: str) -> str:
    # validate only; the draft keeps the url exactly as typed
    try:
        _http_url.validate_python(value)
    except ValidationError:
        raise ValueError(f"URL must be a valid http(s) URL: {value!r}") from None
    return value


Url = Annotated[str, Field(min_length=1), AfterValidator(_check_url)]


class QueryParam(BaseModel):
    key: str
    value: str = ""
    enabled: bool = True


class NoAuth(BaseModel):
    type: Literal["none"] = "none"


class BearerAuth(BaseModel):
    type: Literal["bearer"] = "bearer"
    token: str


class BasicAuth(BaseModel):
    type: Literal["basic"] = "basic"
    username: str
    password: str = ""


Auth = Annotated[Union[NoAuth, BearerAuth, BasicAuth], Field(discriminator="type")]


class RequestCreate(BaseModel):
    name: str = "New Request"
    method: HttpMethod
    url: Url
    headers: Dict[str, str] = {}
    body: Optional[Any] = None
    query_params: List[QueryParam] = []
    auth: Auth = NoAuth()


class RequestUpdate(BaseModel):
    """All fields optional; only the ones sent are merged."""

    name: Optional[str] = None
    method: Optional[HttpMethod] = None
    url: Optional[Url] = None
    headers: Optional[Dict[str, str]] = None
    body: Optional[Any] = None
    query_params: Optional[List[QueryParam]] = None
    auth: Optional[Auth] = None


class RequestOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    method: str
    url: str
    headers: Dict[str, str]
    body: Optional[Any] = None
    query_params: List[QueryParam]
    auth: Auth
    unsaved: bool
    created_at: datetime
    updated_at: datetime


class CheckpointCreate(BaseModel):
    request_id: int
    name: Optional[str] = None


class CheckpointData(BaseModel):
    url: str
    method: str
    headers: Dict[str, str] = {}
    body: Optional[Any] = None


class CheckpointOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    request_id: int
    name: Optional[str] = None
    data: CheckpointData
    created_at: datetime


class CheckpointCreated(CheckpointOut):
    unsaved_cleared: bool
    warning: Optional[str] = None


class Deleted(BaseModel):
    deleted: bool
    id: int


class SendRequest(BaseModel):
    method: Literal["GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS"]
    url: Url
    headers: Dict[str, str] = {}
    query_params: List[QueryParam] = []
    auth: Auth = NoAuth()
    body: Optional[Any] = None


class HistoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    method: str
    url: str
    status_code: Optional[int] = None
    duration_ms: Optional[int] = None
    created_at: datetime
