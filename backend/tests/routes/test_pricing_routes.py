"""Quote endpoint used by the booking form."""

from decimal import Decimal


def quote(client, **payload):
    return client.post("/api/v1/pricing/quote", json={"student_id": "student-1", **payload})


class TestQuoteRoute:
    def test_trial_quote(self, client, teacher) -> None:
        response = quote(client, teacher_id=teacher.id, selection={"duration_minutes": 30})

        body = response.json()
        assert response.status_code == 200
        assert body["is_trial"] is True
        assert Decimal(body["base_price"]) == Decimal("5.00")
        assert Decimal(body["total_amount"]) == Decimal("5.50")
        assert Decimal(body["teacher_earnings"]) == Decimal("4.00")

    def test_package_quote(self, client, teacher) -> None:
        response = quote(
            client,
            teacher_id=teacher.id,
            selection={"lesson_type": "package", "lesson_quantity": 10},
        )

        body = response.json()
        assert Decimal(body["total_amount"]) == Decimal("297.00")
        assert Decimal(body["package"]["discount_amount"]) == Decimal("30.00")
        assert body["package"]["discount_source"] == "platform_ladder"

    def test_no_teacher_selected(self, client) -> None:
        body = quote(client).json()

        assert Decimal(body["total_amount"]) == 0
        assert body["is_trial"] is False

    def test_package_quantity_out_of_range(self, client, teacher) -> None:
        response = quote(
            client,
            teacher_id=teacher.id,
            selection={"lesson_type": "package", "lesson_quantity": 4},
        )

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "INVALID_QUANTITY"

    def test_group_without_rate(self, client, teacher) -> None:
        response = quote(
            client, teacher_id=teacher.id, selection={"lesson_type": "group", "group_size": 3}
        )

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "NO_GROUP_RATE"

    def test_unknown_teacher(self, client) -> None:
        assert quote(client, teacher_id="missing").status_code == 404
