from datetime import date, datetime, time, timedelta
from fastapi import status
from resource_booking.models.booking import Booking, BookingStatus
from resource_booking.models.resource import Resource
from tests.conf_tests import client, clear_db, test_db, test_resource


# Tests
def test_create_resource_success():
    response = client.post("/resources/", json={"name": "Projector Unit 1"})
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["name"] == "Projector Unit 1"
    assert "created_at" in data


# pylint: disable-next=redefined-outer-name
def test_create_resource_duplicate_name(test_resource):
    response = client.post("/resources/", json={"name": test_resource.name})
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "Resource already exists"


def test_create_resource_blank_name():
    response = client.post("/resources/", json={"name": "   "})
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "Resource name is required"


# pylint: disable-next=redefined-outer-name
def test_get_resources_with_data(test_resource):
    response = client.get("/resources/")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["meta"]["total"] == 1
    assert data["data"][0]["id"] == test_resource.id
    assert data["data"][0]["name"] == test_resource.name


def test_get_resources_search(test_db):
    test_db.add_all([Resource(name="Conference Room A"), Resource(name="Laptop Cart")])
    test_db.commit()
    response = client.get("/resources/?search=room")
    assert response.status_code == status.HTTP_200_OK
    names = [resource["name"] for resource in response.json()["data"]]
    assert names == ["Conference Room A"]


# pylint: disable-next=redefined-outer-name
def test_get_resource_success(test_resource):
    response = client.get(f"/resources/{test_resource.id}")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["name"] == test_resource.name


def test_get_resource_not_found():
    response = client.get("/resources/9999")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["detail"] == "Resource not found"


# pylint: disable-next=redefined-outer-name
def test_update_resource_success(test_resource):
    response = client.put(f"/resources/{test_resource.id}", json={"name": "Room B"})
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["name"] == "Room B"


# pylint: disable-next=redefined-outer-name
def test_update_resource_same_name_allowed(test_resource):
    response = client.put(f"/resources/{test_resource.id}", json={"name": test_resource.name})
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["name"] == test_resource.name


# pylint: disable-next=redefined-outer-name
def test_update_resource_name_taken(test_db, test_resource):
    test_db.add(Resource(name="Room B"))
    test_db.commit()
    response = client.put(f"/resources/{test_resource.id}", json={"name": "Room B"})
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_update_resource_not_found():
    response = client.put("/resources/9999", json={"name": "Non-existent Room"})
    assert response.status_code == status.HTTP_404_NOT_FOUND


# pylint: disable-next=redefined-outer-name
def test_delete_resource_success(test_resource, test_db):
    resource_id = test_resource.id
    response = client.delete(f"/resources/{resource_id}")
    assert response.status_code == status.HTTP_204_NO_CONTENT
    test_db.expunge_all()
    assert test_db.query(Resource).filter(Resource.id == resource_id).first() is None


# pylint: disable-next=redefined-outer-name
def test_delete_resource_with_bookings_blocked(test_resource, test_db):
    start = datetime.combine(date.today() + timedelta(days=1), time(10, 0))
    test_db.add(
        Booking(
            resource_id=test_resource.id,
            start_time=start,
            end_time=start + timedelta(hours=1),
            requested_by="John Doe",
            status=BookingStatus.UPCOMING,
        )
    )
    test_db.commit()
    response = client.delete(f"/resources/{test_resource.id}")
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "has bookings" in response.json()["detail"]


def test_delete_resource_not_found():
    response = client.delete("/resources/9999")
    assert response.status_code == status.HTTP_404_NOT_FOUND


# pylint: disable-next=redefined-outer-name
def test_get_availability_single_booking(test_resource, test_db):
    day = date.today() + timedelta(days=2)
    test_db.add(
        Booking(
            resource_id=test_resource.id,
            start_time=datetime.combine(day, time(9, 0)),
            end_time=datetime.combine(day, time(10, 0)),
            requested_by="John Doe",
            status=BookingStatus.UPCOMING,
        )
    )
    test_db.commit()

    response = client.get(f"/resources/{test_resource.id}/availability?date={day}&min_duration=15")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["total_slots"] == 2
    assert data["date"] == day.isoformat()
    assert data["available_slots"][0]["start"] == datetime.combine(day, time(8, 0)).isoformat()
    assert data["available_slots"][0]["end"] == datetime.combine(day, time(8, 50)).isoformat()
    assert data["available_slots"][0]["duration"] == 50
    assert data["available_slots"][1]["start"] == datetime.combine(day, time(10, 10)).isoformat()
    assert data["available_slots"][1]["duration"] == 590


# pylint: disable-next=redefined-outer-name
def test_get_availability_ignores_cancelled(test_resource, test_db):
    day = date.today() + timedelta(days=2)
    test_db.add(
        Booking(
            resource_id=test_resource.id,
            start_time=datetime.combine(day, time(9, 0)),
            end_time=datetime.combine(day, time(10, 0)),
            requested_by="John Doe",
            status=BookingStatus.CANCELLED,
        )
    )
    test_db.commit()

    response = client.get(f"/resources/{test_resource.id}/availability?date={day}")
    assert response.status_code == status.HTTP_200_OK
    slots = response.json()["available_slots"]
    assert len(slots) == 1
    assert slots[0]["duration"] == 720


# pylint: disable-next=redefined-outer-name
def test_get_availability_invalid_duration(test_resource):
    response = client.get(f"/resources/{test_resource.id}/availability?date={date.today()}&min_duration=0")
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_get_availability_resource_not_found():
    response = client.get(f"/resources/9999/availability?date={date.today()}")
    assert response.status_code == status.HTTP_404_NOT_FOUND
