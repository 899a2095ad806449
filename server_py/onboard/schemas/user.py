from pydantic import BaseModel, ConfigDict


# Публичное представление пользователя
class UserPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    role: str
