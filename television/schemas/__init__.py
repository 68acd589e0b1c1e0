"""
television.schemas
~~~~~~~~~~~~~~~~~~
Pydantic schemas and models for the API and the persisted state.
"""
from television.schemas.api_response import ApiResponse
from television.schemas.messages import (
    BlockInfo,
    CommandResponse,
    ExecuteRequest,
    QueryRequest,
)
from television.schemas.state import ChannelState, UserProfile, ViewHistory

# Call model_rebuild to resolve forward references in generic Pydantic models.
ApiResponse.model_rebuild()
