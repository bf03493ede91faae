from pydantic import BaseModel, ConfigDict, EmailStr, constr
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    # JSON en camelCase (firstName, lastName...), attributs Python en snake_case
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class UserCreate(CamelModel):
    first_name: constr(strip_whitespace=True, min_length=1)
    last_name: constr(strip_whitespace=True, min_length=1)
    email: EmailStr  # Valide l'email automatiquement


class UserResponse(CamelModel):
    id: int
    first_name: str
    last_name: str
    email: str
