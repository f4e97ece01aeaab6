"""Option-list Pydantic schemas feeding the cascading selectors."""

from pydantic import BaseModel


class ClassOption(BaseModel):
    class_id: str
    class_name: str

    model_config = {"from_attributes": True}


class GroupOption(BaseModel):
    group_id: str
    group_name: str

    model_config = {"from_attributes": True}


class ParticipantOption(BaseModel):
    nrp: str
    full_name: str

    model_config = {"from_attributes": True}
