# Models for the Actions wire format
from pydantic import BaseModel, ConfigDict, Field


class ActionParameter(BaseModel):
    name: str
    label: str | None = None


class LinkedAction(BaseModel):
    href: str
    label: str
    parameters: list[ActionParameter] | None = None


class ActionLinks(BaseModel):
    actions: list[LinkedAction]


class ActionError(BaseModel):
    message: str


# API response models
class ActionGetResponse(BaseModel):
    icon: str
    label: str
    title: str
    description: str
    disabled: bool | None = None
    error: ActionError | None = None
    links: ActionLinks | None = None


class ActionPostResponse(BaseModel):
    transaction: str
    message: str | None = None


# API request models
class ActionPostRequest(BaseModel):
    account: str = Field(..., description="Base58 encoded public key of the sender", examples=["3h4AtoLTh3bWwaLhdtgQtcC3a3Tokb8NJbtqR9rhp7p6"])


class ActionRule(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    path_pattern: str = Field(..., alias="pathPattern")
    api_path: str = Field(..., alias="apiPath")


class ActionsJson(BaseModel):
    rules: list[ActionRule]
