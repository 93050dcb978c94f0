from __future__ import annotations

from typing import Any

from src.fleet.domain.models.coordinate import Coordinate
from src.fleet.domain.models.form import FormReferenceData
from src.fleet.domain.models.location_snapshot import LocationSnapshot
from src.fleet.domain.models.people import Passenger, User, Vehicle
from src.fleet.domain.models.task_draft import TaskDraft
from src.fleet.domain.models.task_record import TaskLocations, TaskRecord
from src.fleet.domain.models.task_summary import TaskSummary


class PayloadMapper:
    """Translate between task API wire bodies and domain models.

    Field names on the wire are a fixed contract with the server.
    """

    @staticmethod
    def to_create_payload(draft: TaskDraft, locations: LocationSnapshot) -> dict[str, Any]:
        if draft.driver is None or draft.vehicle is None or draft.task_type is None:
            raise ValueError("Driver, vehicle and task type are required to build a payload.")
        start = locations.origin_coordinate
        end = locations.destination_coordinate
        if start is None or end is None:
            raise ValueError("Both endpoint coordinates are required to build a payload.")
        return {
            "asset_id": draft.vehicle.asset_id,
            "driver_id": draft.driver.id,
            "additional_driver_id": draft.second_driver.id if draft.second_driver else None,
            "task_type": draft.task_type.value,
            "date": draft.date,
            "time": draft.time,
            "description": draft.description,
            "location_start": locations.origin_text,
            "location_end": locations.destination_text,
            "start_lat": start.latitude,
            "start_lng": start.longitude,
            "end_lat": end.latitude,
            "end_lng": end.longitude,
            "passengers": [
                {"name": passenger.name, "army_number": passenger.army_number}
                for passenger in draft.passengers
            ],
        }

    @staticmethod
    def to_form_reference_data(body: dict[str, Any]) -> FormReferenceData:
        # Older servers put the lists at the top level, newer ones under "data".
        source = body.get("data") if isinstance(body.get("data"), dict) else body
        return FormReferenceData(
            drivers=[PayloadMapper.to_user(item) for item in source.get("drivers") or []],
            users=[PayloadMapper.to_user(item) for item in source.get("users") or []],
            vehicles=[PayloadMapper.to_vehicle(item) for item in source.get("vehicles") or []],
        )

    @staticmethod
    def to_user(data: dict[str, Any]) -> User:
        user_id = data.get("id", data.get("kod_pengguna_id"))
        return User(
            id=user_id,
            name=data.get("name") or "",
            no_tentera=data.get("no_tentera") or "",
        )

    @staticmethod
    def to_vehicle(data: dict[str, Any]) -> Vehicle:
        return Vehicle(
            asset_id=data["asset_id"],
            variant_id=data.get("variant_id") or 0,
            registration_number=data.get("registration_number") or "",
            jenis_kenderaan=data.get("jenis_kenderaan") or "",
        )

    @staticmethod
    def to_task_record(task_id: str, data: dict[str, Any]) -> TaskRecord:
        driver2 = data.get("driver2")
        return TaskRecord(
            id=task_id,
            driver=PayloadMapper.to_user(data["driver"]),
            driver2=PayloadMapper.to_user(driver2) if driver2 else None,
            vehicle=PayloadMapper.to_vehicle(data["vehicle"]),
            task_type=data.get("task_type") or "",
            date=data.get("date") or "",
            time=data.get("time") or "",
            description=data.get("description") or "",
            passengers=[
                Passenger(name=item.get("name") or "", army_number=item.get("army_number") or "")
                for item in data.get("passengers") or []
            ],
            locations=PayloadMapper.to_task_locations(data.get("locations")),
        )

    @staticmethod
    def to_task_locations(data: dict[str, Any] | None) -> TaskLocations | None:
        if not data:
            return None
        return TaskLocations(
            start_location=data.get("start_location") or "",
            end_location=data.get("end_location") or "",
            start=PayloadMapper._coordinate(data.get("start_lat"), data.get("start_lng")),
            end=PayloadMapper._coordinate(data.get("end_lat"), data.get("end_lng")),
        )

    @staticmethod
    def to_task_summary(data: dict[str, Any]) -> TaskSummary:
        # Nullable columns come back as null; the list view wants empty strings.
        cleaned = {key: value for key, value in data.items() if value is not None}
        return TaskSummary.model_validate(cleaned)

    @staticmethod
    def to_created_task_id(data: Any) -> str | None:
        if isinstance(data, dict):
            for key in ("id", "task_id"):
                if data.get(key) is not None:
                    return str(data[key])
            return None
        if data is None:
            return None
        return str(data)

    @staticmethod
    def _coordinate(lat: Any, lng: Any) -> Coordinate | None:
        # Coordinates arrive as decimal strings from the server.
        if lat in (None, "") or lng in (None, ""):
            return None
        return Coordinate(latitude=float(lat), longitude=float(lng))
