"""Trial, teacher pricing and monitoring endpoints."""

from decimal import Decimal


class TestTrialRoutes:
    def test_eligibility(self, client, teacher) -> None:
        response = client.get(
            "/api/v1/trials/eligibility",
            params={"student_id": "student-1", "teacher_id": teacher.id},
        )

        body = response.json()
        assert response.status_code == 200
        assert body["eligible"] is True
        assert body["trials_remaining"] == 3

    def test_eligibility_requires_ids(self, client) -> None:
        assert client.get("/api/v1/trials/eligibility").status_code == 422

    def test_analytics(self, client, teacher, lesson_factory) -> None:
        lesson_factory(teacher.id, is_trial=True, base_price=Decimal("5.00"))

        body = client.get("/api/v1/trials/analytics").json()

        assert body["total_trial_lessons"] == 1
        assert body["trials_by_teacher"][0]["teacher_id"] == teacher.id


class TestTeacherPricingRoutes:
    def test_get_pricing(self, client, teacher_factory) -> None:
        teacher = teacher_factory(package_offers=[(10, 10)])

        body = client.get(f"/api/v1/teachers/{teacher.id}/pricing").json()

        assert {int(k): Decimal(v) for k, v in body["rate_card"]["prices"].items()} == {
            30: Decimal("18"),
            60: Decimal("30"),
        }
        assert body["package_offers"][0]["lesson_count"] == 10

    def test_replace_pricing(self, client, teacher) -> None:
        response = client.put(
            f"/api/v1/teachers/{teacher.id}/pricing",
            json={
                "rate_card": {"prices": {"45": "25.00"}},
                "group_rates": [{"group_size": 2, "price_per_person": "20.00"}],
            },
        )

        body = response.json()
        assert response.status_code == 200
        assert list(body["rate_card"]["prices"]) == ["45"]
        assert body["group_rates"][0]["group_size"] == 2

    def test_duplicate_offers_rejected(self, client, teacher) -> None:
        response = client.put(
            f"/api/v1/teachers/{teacher.id}/pricing",
            json={
                "rate_card": {"prices": {"60": "30"}},
                "package_offers": [
                    {"lesson_count": 10, "discount_percent": "5"},
                    {"lesson_count": 10, "discount_percent": "8"},
                ],
            },
        )

        assert response.status_code == 422

    def test_unknown_teacher(self, client) -> None:
        response = client.get("/api/v1/teachers/missing/pricing")

        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "TEACHER_NOT_FOUND"


class TestMonitoringRoutes:
    def test_metrics(self, client) -> None:
        response = client.get("/api/v1/metrics")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert "lessonbook_" in response.text

    def test_health(self, client) -> None:
        assert client.get("/health").json()["status"] == "ok"
