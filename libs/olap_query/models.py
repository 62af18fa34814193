"""Request, response and error payload models for the query pipeline."""

from pydantic import BaseModel, ConfigDict, Field

CACHED_RESULT_HEADER = "mondrian-rest-cached-result"


class TidyConfig(BaseModel):
    """Options for the tidy output shape."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    enabled: bool = False
    simplify_names: bool = Field(default=False, alias="simplifyNames")
    level_name_translation_map: dict[str, str] = Field(
        default_factory=dict, alias="levelNameTranslationMap"
    )


class QueryRequest(BaseModel):
    """An MDX query against a named connection."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    connection_name: str = Field(alias="connectionName")
    query: str
    cache_key: int | None = Field(
        default=None,
        alias="cacheKey",
        description="Caller-supplied fingerprint; requests sharing a key share results",
    )
    tidy: TidyConfig | None = None


class ErrorPayload(BaseModel):
    """Diagnostic body returned for a failed query."""

    model_config = ConfigDict(populate_by_name=True)

    reason: str
    root_cause_reason: str = Field(alias="rootCauseReason")
    sql_state: str = Field(default="", alias="SQLState")


class QueryResponse(BaseModel):
    """Transport-neutral outcome of a request."""

    payload: bytes = b""
    headers: dict[str, str] = Field(default_factory=dict)
    status: int = 200
    media_type: str = "application/json"

    @property
    def cached(self) -> bool:
        return self.headers.get(CACHED_RESULT_HEADER) == "true"
