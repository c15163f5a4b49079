# fava_bridge/schema.py
from typing import Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field

TableRecord = Dict[str, str]

class QueryResultData(BaseModel):
    table: str

class QueryEnvelope(BaseModel):
    model_config = ConfigDict(extra="ignore")

    success: bool
    error: Optional[str] = None
    data: Optional[QueryResultData] = None

class Transaction(BaseModel):
    date: str
    changed: str
    balance: str

class SuccessEnvelope(BaseModel):
    success: Literal[True] = True
    data: List[TableRecord] = Field(default_factory=list)

class ErrorEnvelope(BaseModel):
    success: Literal[False] = False
    error: str
