from sqlmodel import Field, SQLModel


class Service(SQLModel, table=True):
    __tablename__ = "services"
    id: int | None = Field(default=None, primary_key=True)
    name: str
    duration: int = Field(gt=0)  # minutes
    is_active: bool = True
