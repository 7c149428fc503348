from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class FetchTablesRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    favorite_id: Optional[str] = None


class TableDataRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    table_name: str = Field(min_length=1)
    start_index: Optional[int] = Field(default=None, ge=0)


class TableSchemaRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    table_name: str = Field(min_length=1)
    is_fetched: bool = False


class MutationParametersModel(BaseModel):
    cascade: bool = False
    restart_identity: bool = False


class DropTableRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    table_name: str = Field(min_length=1)
    selected_table_id: str
    parameters: Optional[MutationParametersModel] = None
    current_table_name: Optional[str] = None


class TruncateTableRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    table_name: str = Field(min_length=1)
    selected_table_id: str
    parameters: Optional[MutationParametersModel] = None


class OutcomeResponse(BaseModel):
    ok: bool = True
