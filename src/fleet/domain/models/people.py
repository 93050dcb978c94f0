from pydantic import BaseModel, Field


class User(BaseModel):
    id: int = Field(description="Server user identifier (kod_pengguna_id).")
    name: str
    no_tentera: str = Field(default="", description="Army service number.")


class Vehicle(BaseModel):
    asset_id: int
    variant_id: int = 0
    registration_number: str
    jenis_kenderaan: str = Field(default="", description="Vehicle type label.")


class Passenger(BaseModel):
    name: str = ""
    army_number: str = ""

    @classmethod
    def from_user(cls, user: User) -> "Passenger":
        return cls(name=user.name, army_number=user.no_tentera)
