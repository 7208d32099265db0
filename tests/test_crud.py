from datetime import date, timedelta

import pytest

from studyhub.extensions import db
from studyhub.models import Exam, StudySession, Routine, Syllabus
from studyhub.routes.exams import when_label
from studyhub.routes.syllabus import calculate_progress

from conftest import create_user


@pytest.fixture
def other_user_client(app):
    """A second, logged-in user used to check row ownership."""
    create_user(app, username="intruder", email="intruder@example.com")
    client = app.test_client()
    with client.session_transaction() as sess:
        sess["username"] = "intruder"
    return client

# ----------------------------------------------------
#                  ROUTINES
# ----------------------------------------------------

def test_routines_crud_and_ordering(auth_client):
    client = auth_client["client"]
    for day, start, end, title in [("3", "14:00", "15:00", "Chemistry"), (1, "9:30", "10:30", "Maths"), (1, "08:00", "09:00", "Run")]:
        response = client.post(
            "/api/routines/",
            json={"title": title, "day_of_week": day, "start_time": start, "end_time": end},
        )
        assert response.status_code == 201

    routines = client.get("/api/routines/").get_json()
    assert [r["title"] for r in routines] == ["Run", "Maths", "Chemistry"]
    assert routines[1]["start_time"] == "09:30"
    assert routines[1]["day_name"] == "Monday"

    monday = client.get("/api/routines/?day=1").get_json()
    assert len(monday) == 2

    routine_id = routines[0]["id"]
    updated = client.put(
        f"/api/routines/{routine_id}",
        json={"title": "Long run", "day_of_week": 0, "start_time": "07:00", "end_time": "08:30"},
    )
    assert updated.status_code == 200
    assert updated.get_json()["routine"]["day_name"] == "Sunday"

    assert client.delete(f"/api/routines/{routine_id}").status_code == 200
    assert len(client.get("/api/routines/").get_json()) == 2


@pytest.mark.parametrize(
    "payload",
    [
        {"title": "", "day_of_week": 1, "start_time": "08:00", "end_time": "09:00"},
        {"title": "X", "day_of_week": 7, "start_time": "08:00", "end_time": "09:00"},
        {"title": "X", "day_of_week": "monday", "start_time": "08:00", "end_time": "09:00"},
        {"title": "X", "day_of_week": 2.9, "start_time": "08:00", "end_time": "09:00"},
        {"title": "X", "day_of_week": True, "start_time": "08:00", "end_time": "09:00"},
        {"title": "X", "start_time": "08:00", "end_time": "09:00"},
        {"title": "X", "day_of_week": 1, "start_time": "25:00", "end_time": "26:00"},
        {"title": "X", "day_of_week": 1, "start_time": "10:00", "end_time": "09:00"},
    ],
)
def test_routine_validation(auth_client, payload):
    response = auth_client["client"].post("/api/routines/", json=payload)
    assert response.status_code == 400


def test_routines_are_private(auth_client, other_user_client):
    client = auth_client["client"]
    created = client.post(
        "/api/routines/",
        json={"title": "Mine", "day_of_week": 2, "start_time": "08:00", "end_time": "09:00"},
    ).get_json()["routine"]

    assert other_user_client.get("/api/routines/").get_json() == []
    assert other_user_client.delete(f"/api/routines/{created['id']}").status_code == 404

# ----------------------------------------------------
#                  SYLLABUS
# ----------------------------------------------------

def test_calculate_progress():
    assert calculate_progress([]) == 0
    assert calculate_progress([{"completed": True}, {"completed": False}]) == 50
    # Half values round up
    topics = [{"completed": True}] + [{"completed": False}] * 7
    assert calculate_progress(topics) == 13
    assert calculate_progress([{"completed": True}] * 3) == 100


def test_syllabus_topics_drive_progress(auth_client):
    client = auth_client["client"]
    response = client.post(
        "/api/syllabus/",
        json={"course_name": "Physics", "topics": ["Kinematics", {"name": "Optics", "completed": True}]},
    )
    assert response.status_code == 201
    syllabus = response.get_json()["syllabus"]
    assert syllabus["progress"] == 50
    assert all(topic["id"] for topic in syllabus["topics"])

    syllabus_id = syllabus["id"]
    added = client.post(f"/api/syllabus/{syllabus_id}/topics", json={"name": "Waves"}).get_json()
    assert added["syllabus"]["progress"] == 33

    kinematics = added["syllabus"]["topics"][0]
    toggled = client.patch(f"/api/syllabus/{syllabus_id}/topics/{kinematics['id']}").get_json()
    assert toggled["syllabus"]["topics"][0]["completed"] is True
    assert toggled["syllabus"]["progress"] == 67

    explicit = client.patch(
        f"/api/syllabus/{syllabus_id}/topics/{kinematics['id']}", json={"completed": False}
    ).get_json()
    assert explicit["syllabus"]["progress"] == 33

    waves = added["topic"]
    removed = client.delete(f"/api/syllabus/{syllabus_id}/topics/{waves['id']}").get_json()
    assert removed["syllabus"]["progress"] == 50

    # The change survived the request
    listed = client.get("/api/syllabus/").get_json()
    assert listed[0]["progress"] == 50
    assert [t["name"] for t in listed[0]["topics"]] == ["Kinematics", "Optics"]


def test_syllabus_update_and_delete(auth_client):
    client = auth_client["client"]
    syllabus_id = client.post("/api/syllabus/", json={"course_name": "Bio"}).get_json()["syllabus"]["id"]

    updated = client.put(
        f"/api/syllabus/{syllabus_id}",
        json={"course_name": "Biology", "topics": [{"name": "Cells", "completed": True}]},
    ).get_json()["syllabus"]
    assert updated["course_name"] == "Biology"
    assert updated["progress"] == 100

    assert client.put(f"/api/syllabus/{syllabus_id}", json={"topics": "Cells"}).status_code == 400
    assert client.patch(f"/api/syllabus/{syllabus_id}/topics/unknown").status_code == 404
    assert client.delete(f"/api/syllabus/{syllabus_id}").status_code == 200
    assert client.get("/api/syllabus/").get_json() == []


def test_duplicate_topic_ids_are_replaced(auth_client):
    client = auth_client["client"]
    syllabus = client.post(
        "/api/syllabus/",
        json={
            "course_name": "Chemistry",
            "topics": [{"id": "t1", "name": "Acids"}, {"id": "t1", "name": "Bases"}, {"name": "Salts"}],
        },
    ).get_json()["syllabus"]
    ids = [topic["id"] for topic in syllabus["topics"]]
    assert ids[0] == "t1"
    assert len(set(ids)) == 3

    # Toggling the kept id only touches its own topic
    toggled = client.patch(f"/api/syllabus/{syllabus['id']}/topics/t1").get_json()["syllabus"]
    assert [topic["completed"] for topic in toggled["topics"]] == [True, False, False]
    assert toggled["progress"] == 33


def test_syllabus_validation_and_privacy(auth_client, other_user_client):
    client = auth_client["client"]
    assert client.post("/api/syllabus/", json={"course_name": " "}).status_code == 400
    assert client.post("/api/syllabus/", json={"course_name": "X", "topics": [{"name": ""}]}).status_code == 400

    syllabus_id = client.post("/api/syllabus/", json={"course_name": "Mine"}).get_json()["syllabus"]["id"]
    assert other_user_client.put(f"/api/syllabus/{syllabus_id}", json={"course_name": "Theirs"}).status_code == 404

# ----------------------------------------------------
#                  NOTES
# ----------------------------------------------------

def test_notes_search_and_tags(auth_client):
    client = auth_client["client"]
    client.post("/api/notes/", json={"title": "Newton", "content": "F = ma", "tags": ["physics", " exam ", "physics", ""]})
    client.post("/api/notes/", json={"title": "Mitosis", "content": "Cell division", "tags": ["biology"]})

    notes = client.get("/api/notes/").get_json()
    assert len(notes) == 2
    newton = next(n for n in notes if n["title"] == "Newton")
    assert newton["tags"] == ["physics", "exam"]

    assert [n["title"] for n in client.get("/api/notes/?q=CELL").get_json()] == ["Mitosis"]
    assert [n["title"] for n in client.get("/api/notes/?tag=physics").get_json()] == ["Newton"]
    assert client.get("/api/notes/?q=cell&tag=physics").get_json() == []
    assert client.get("/api/notes/tags").get_json() == ["biology", "exam", "physics"]


def test_notes_update_delete_and_validation(auth_client, other_user_client):
    client = auth_client["client"]
    assert client.post("/api/notes/", json={"title": ""}).status_code == 400
    assert client.post("/api/notes/", json={"title": "T", "tags": "x"}).status_code == 400

    note_id = client.post("/api/notes/", json={"title": "Draft"}).get_json()["note"]["id"]
    updated = client.put(f"/api/notes/{note_id}", json={"content": "Body", "tags": ["a"]}).get_json()["note"]
    assert updated["title"] == "Draft"
    assert updated["content"] == "Body"
    assert updated["tags"] == ["a"]

    assert other_user_client.delete(f"/api/notes/{note_id}").status_code == 404
    assert client.delete(f"/api/notes/{note_id}").status_code == 200
    assert client.get("/api/notes/").get_json() == []

# ----------------------------------------------------
#                  EXAMS
# ----------------------------------------------------

def test_when_label():
    wednesday = date(2025, 6, 4)
    assert when_label(date(2025, 6, 3), wednesday) == "past"
    assert when_label(wednesday, wednesday) == "today"
    assert when_label(date(2025, 6, 5), wednesday) == "tomorrow"
    assert when_label(date(2025, 6, 7), wednesday) == "this_week"
    assert when_label(date(2025, 6, 8), wednesday) == "later"


def test_exams_crud(auth_client):
    client = auth_client["client"]
    today = date.today()
    past = (today - timedelta(days=3)).isoformat()
    soon = (today + timedelta(days=10)).isoformat()

    response = client.post(
        "/api/exams/",
        json={"subject": "History", "date": soon, "time": "9:00", "location": "Room 4", "mode": "online", "marks": "100"},
    )
    assert response.status_code == 201
    exam = response.get_json()["exam"]
    assert exam["time"] == "09:00"
    assert exam["marks"] == 100
    assert exam["mode"] == "online"
    assert exam["reminders"] == []

    client.post("/api/exams/", json={"subject": "Latin", "date": past})

    all_exams = client.get("/api/exams/").get_json()
    assert [e["subject"] for e in all_exams] == ["Latin", "History"]
    assert all_exams[0]["mode"] == "offline"
    assert all_exams[0]["when"] == "past"

    upcoming = client.get("/api/exams/?upcoming=1").get_json()
    assert [e["subject"] for e in upcoming] == ["History"]

    updated = client.put(f"/api/exams/{exam['id']}", json={"location": "", "time": ""}).get_json()["exam"]
    assert updated["location"] is None
    assert updated["time"] is None
    assert updated["subject"] == "History"

    assert client.delete(f"/api/exams/{exam['id']}").status_code == 200
    assert len(client.get("/api/exams/").get_json()) == 1


@pytest.mark.parametrize(
    "payload",
    [
        {"date": "2030-01-01"},
        {"subject": "X"},
        {"subject": "X", "date": "not a date"},
        {"subject": "X", "date": "2030-01-01", "mode": "hybrid"},
        {"subject": "X", "date": "2030-01-01", "marks": "lots"},
        {"subject": "X", "date": "2030-01-01", "time": "99:99"},
        {"subject": "X", "date": "2030-01-01", "reminders": "tomorrow"},
    ],
)
def test_exam_validation(auth_client, payload):
    assert auth_client["client"].post("/api/exams/", json=payload).status_code == 400

# ----------------------------------------------------
#                  DASHBOARD
# ----------------------------------------------------

def test_dashboard_aggregates(auth_client):
    app = auth_client["app"]
    user_id = auth_client["user_id"]
    today = date.today()
    with app.app_context():
        db.session.add_all(
            [
                StudySession(user_id=user_id, duration=25, subject="Physics"),
                StudySession(user_id=user_id, duration=50),
                StudySession(user_id=user_id, duration=25),
                Exam(user_id=user_id, subject="Maths", date=today + timedelta(days=1)),
                Exam(user_id=user_id, subject="Old", date=today - timedelta(days=1)),
                Syllabus(user_id=user_id, course_name="A", topics=[], progress=50),
                Syllabus(user_id=user_id, course_name="B", topics=[], progress=75),
                Routine(
                    user_id=user_id,
                    title="Today",
                    day_of_week=(today.weekday() + 1) % 7,
                    start_time="08:00",
                    end_time="09:00",
                ),
                Routine(
                    user_id=user_id,
                    title="Tomorrow",
                    day_of_week=(today.weekday() + 2) % 7,
                    start_time="08:00",
                    end_time="09:00",
                ),
            ]
        )
        db.session.commit()

    data = auth_client["client"].get("/api/dashboard").get_json()
    assert data["stats"] == {
        "total_study_minutes": 100,
        "total_study_hours": 2,
        "upcoming_exams": 1,
        "syllabus_progress": 63,
    }
    assert [e["subject"] for e in data["upcoming_exams"]] == ["Maths"]
    assert [r["title"] for r in data["todays_routines"]] == ["Today"]
    assert len(data["recent_sessions"]) == 3


def test_dashboard_empty(auth_client):
    data = auth_client["client"].get("/api/dashboard").get_json()
    assert data["stats"]["total_study_minutes"] == 0
    assert data["stats"]["syllabus_progress"] == 0
    assert data["recent_sessions"] == []
