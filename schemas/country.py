from pydantic import BaseModel


class CountryOption(BaseModel):
    code: str
    name: str
