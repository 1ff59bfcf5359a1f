"""Unit tests for enrollment routes."""

import pytest
from fastapi.testclient import TestClient

from coursehub.store import Course, EntityStore, StoreUnavailableError, User


@pytest.mark.unit
class TestEnroll:
    """POST /enrollments/{course_id}."""

    def test_enroll(
        self, client: TestClient, course: Course, student: User, auth_headers
    ) -> None:
        response = client.post(f"/enrollments/{course.id}", headers=auth_headers(student))

        assert response.status_code == 201
        body = response.json()
        assert body["studentId"] == student.id
        assert body["courseId"] == course.id
        assert body["status"] == "active"
        assert "enrollmentDate" in body

        listed = client.get(f"/courses/{course.id}").json()
        assert listed["enrolledStudents"] == [student.id]

    def test_enroll_twice(
        self, client: TestClient, course: Course, student: User, auth_headers
    ) -> None:
        client.post(f"/enrollments/{course.id}", headers=auth_headers(student))

        response = client.post(f"/enrollments/{course.id}", headers=auth_headers(student))

        assert response.status_code == 400
        assert response.json() == {"message": "Already enrolled in this course"}

    def test_enroll_missing_course(self, client: TestClient, student: User, auth_headers) -> None:
        response = client.post("/enrollments/nonexistent-id", headers=auth_headers(student))

        assert response.status_code == 404
        assert response.json() == {"message": "Course not found"}

    def test_enroll_as_instructor(
        self, client: TestClient, course: Course, instructor: User, auth_headers
    ) -> None:
        response = client.post(f"/enrollments/{course.id}", headers=auth_headers(instructor))

        assert response.status_code == 403
        assert response.json() == {"message": "Access denied. Students only."}

    def test_enroll_anonymous(self, client: TestClient, course: Course) -> None:
        response = client.post(f"/enrollments/{course.id}")

        assert response.status_code == 401

    def test_store_unavailable(
        self,
        client: TestClient,
        store: EntityStore,
        course: Course,
        student: User,
        auth_headers,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        def unavailable(*_args: object, **_kwargs: object) -> None:
            raise StoreUnavailableError("database is locked")

        headers = auth_headers(student)
        monkeypatch.setattr(store, "insert_active_enrollment", unavailable)

        response = client.post(f"/enrollments/{course.id}", headers=headers)

        assert response.status_code == 503
        assert response.json() == {"message": "Service temporarily unavailable"}


@pytest.mark.unit
class TestMyEnrollments:
    """GET /enrollments/my-enrollments."""

    def test_lists_active_with_course(
        self, client: TestClient, course: Course, student: User, auth_headers
    ) -> None:
        client.post(f"/enrollments/{course.id}", headers=auth_headers(student))

        response = client.get("/enrollments/my-enrollments", headers=auth_headers(student))

        assert response.status_code == 200
        [item] = response.json()
        assert item["course"]["id"] == course.id
        assert item["course"]["instructor"]["name"] == "Ada Lovelace"
        assert item["course"]["enrolledStudents"] == [student.id]

    def test_empty(self, client: TestClient, student: User, auth_headers) -> None:
        response = client.get("/enrollments/my-enrollments", headers=auth_headers(student))

        assert response.status_code == 200
        assert response.json() == []

    def test_instructor_denied(self, client: TestClient, instructor: User, auth_headers) -> None:
        response = client.get("/enrollments/my-enrollments", headers=auth_headers(instructor))

        assert response.status_code == 403


@pytest.mark.unit
class TestDrop:
    """DELETE /enrollments/{id}."""

    def test_drop(
        self, client: TestClient, course: Course, student: User, auth_headers
    ) -> None:
        enrollment_id = client.post(
            f"/enrollments/{course.id}", headers=auth_headers(student)
        ).json()["id"]

        response = client.delete(f"/enrollments/{enrollment_id}", headers=auth_headers(student))

        assert response.status_code == 200
        assert response.json() == {"message": "Successfully dropped the course"}
        assert client.get(f"/courses/{course.id}").json()["enrolledStudents"] == []

    def test_drop_by_course_id(
        self, client: TestClient, course: Course, student: User, auth_headers
    ) -> None:
        client.post(f"/enrollments/{course.id}", headers=auth_headers(student))

        response = client.delete(f"/enrollments/{course.id}", headers=auth_headers(student))

        assert response.status_code == 200

    def test_drop_twice(
        self, client: TestClient, course: Course, student: User, auth_headers
    ) -> None:
        enrollment_id = client.post(
            f"/enrollments/{course.id}", headers=auth_headers(student)
        ).json()["id"]
        client.delete(f"/enrollments/{enrollment_id}", headers=auth_headers(student))

        response = client.delete(f"/enrollments/{enrollment_id}", headers=auth_headers(student))

        assert response.status_code == 400
        assert response.json() == {"message": "Enrollment is not active"}

    def test_drop_someone_elses(
        self,
        client: TestClient,
        course: Course,
        student: User,
        other_student: User,
        auth_headers,
    ) -> None:
        enrollment_id = client.post(
            f"/enrollments/{course.id}", headers=auth_headers(student)
        ).json()["id"]

        response = client.delete(
            f"/enrollments/{enrollment_id}", headers=auth_headers(other_student)
        )

        assert response.status_code == 403
        assert response.json() == {"message": "Not authorized to drop this course"}

    def test_drop_unknown(self, client: TestClient, student: User, auth_headers) -> None:
        response = client.delete("/enrollments/nonexistent-id", headers=auth_headers(student))

        assert response.status_code == 404
        assert response.json() == {"message": "Enrollment not found"}
