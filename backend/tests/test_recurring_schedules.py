def create_slot(client, headers, **overrides):
    payload = {
        "start_time": "16:00",
        "end_time": "17:00",
        "start_date": "2026-10-19",
        "days": ["MON", "WED"],
        "max_students": 2,
        **overrides,
    }
    response = client.post("/api/recurring-schedules", headers=headers, json=payload)
    assert response.status_code == 201
    return response.json()


def create_student(client, headers, name):
    response = client.post("/api/students", headers=headers, json={"name": name})
    assert response.status_code == 201
    return response.json()["id"]


def assign(client, headers, schedule_id, day, student_id):
    return client.post(
        "/api/recurring-day-assignments",
        headers=headers,
        json={"recurring_schedule_id": schedule_id, "day": day, "student_id": student_id},
    )


def test_create_list_and_delete_slots(client, teacher_headers):
    slot = create_slot(client, teacher_headers, days=["WED", "MON", "WED"], label="Evening")
    assert slot["days"] == ["WED", "MON"]
    assert slot["label"] == "Evening"
    assert slot["max_students"] == 2

    earlier = create_slot(client, teacher_headers, start_time="09:00", end_time="10:00")
    listed = client.get("/api/recurring-schedules", headers=teacher_headers).json()
    assert [item["id"] for item in listed] == [earlier["id"], slot["id"]]

    deleted = client.delete(f"/api/recurring-schedules/{slot['id']}", headers=teacher_headers)
    assert deleted.json() == {"success": True}
    assert client.delete(f"/api/recurring-schedules/{slot['id']}", headers=teacher_headers).status_code == 404


def test_slot_validation(client, teacher_headers):
    bad_time = {"start_time": "25:00", "end_time": "26:00", "start_date": "2026-10-19", "days": ["MON"]}
    assert client.post("/api/recurring-schedules", headers=teacher_headers, json=bad_time).status_code == 422

    reversed_times = {"start_time": "17:00", "end_time": "16:00", "start_date": "2026-10-19", "days": ["MON"]}
    assert client.post("/api/recurring-schedules", headers=teacher_headers, json=reversed_times).status_code == 422

    no_days = {"start_time": "16:00", "end_time": "17:00", "start_date": "2026-10-19", "days": []}
    assert client.post("/api/recurring-schedules", headers=teacher_headers, json=no_days).status_code == 422


def test_day_assignment_rules(client, teacher_headers):
    slot = create_slot(client, teacher_headers)
    asha = create_student(client, teacher_headers, "Asha")
    ravi = create_student(client, teacher_headers, "Ravi")
    meera = create_student(client, teacher_headers, "Meera")

    created = assign(client, teacher_headers, slot["id"], "MON", asha)
    assert created.status_code == 201
    assert created.json()["student_id"] == asha

    disabled_day = assign(client, teacher_headers, slot["id"], "TUE", asha)
    assert disabled_day.status_code == 400
    assert disabled_day.json()["detail"] == "Day is not enabled for this schedule"

    duplicate = assign(client, teacher_headers, slot["id"], "MON", asha)
    assert duplicate.status_code == 409
    assert duplicate.json()["detail"] == "Student already assigned to this slot"

    assert assign(client, teacher_headers, slot["id"], "MON", ravi).status_code == 201
    full = assign(client, teacher_headers, slot["id"], "MON", meera)
    assert full.status_code == 409
    assert full.json()["detail"] == "Slot is full"

    assert assign(client, teacher_headers, slot["id"], "MON", 999).status_code == 404

    listed = client.get("/api/recurring-day-assignments", headers=teacher_headers).json()
    assert sorted(item["student_id"] for item in listed) == sorted([asha, ravi])

    removed = client.request(
        "DELETE",
        "/api/recurring-day-assignments",
        headers=teacher_headers,
        json={"recurring_schedule_id": slot["id"], "day": "MON", "student_id": asha},
    )
    assert removed.status_code == 200
    assert removed.json() == {"success": True}
    assert assign(client, teacher_headers, slot["id"], "MON", meera).status_code == 201
