from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


# Request body for POST /mcp/tools/call; `arguments` is validated by the dispatcher
class ToolCallRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")
    name: Optional[str] = None
    arguments: Any = None
