"""Schemas for permission grants, role defaults and effective permissions."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.enums import Action, Role

SECTION_MAX_LENGTH = 100


class Capabilities(BaseModel):
    """The five capability flags; also used for role defaults."""

    can_view: bool = False
    can_create: bool = False
    can_edit: bool = False
    can_delete: bool = False
    can_publish: bool = False

    def allows(self, action: Action | str) -> bool:
        return bool(getattr(self, f"can_{action}"))


class GrantIn(Capabilities):
    """One override in a replace-set payload. Omitted flags are false."""

    section: str = Field(..., min_length=1, max_length=SECTION_MAX_LENGTH)
    sub_section: str | None = Field(default=None, max_length=SECTION_MAX_LENGTH)

    @field_validator("section")
    @classmethod
    def strip_section(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("section must be non-empty")
        return v

    @field_validator("sub_section")
    @classmethod
    def blank_sub_section_is_none(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return v.strip()


class GrantOut(GrantIn):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int


class ReplaceGrantsRequest(BaseModel):
    permissions: list[GrantIn] = Field(default_factory=list, max_length=200)


class ReplaceGrantsResult(BaseModel):
    user_id: int
    updated_count: int


class EffectivePermissionsOut(BaseModel):
    """role_based is true when no per-user grants exist and role defaults apply."""

    role: Role
    role_based: bool
    permissions: Capabilities | list[GrantOut]


class AccessCheckOut(BaseModel):
    section: str
    sub_section: str | None = None
    action: Action
    allowed: bool
    source: str = Field(..., description="super_admin, grant or role_default")
