"""
Tests for request validation and the HTTP error shape.

These tests verify:
  - Structural request problems become validation_error with a field message
  - Bodies that are not JSON objects become invalid_request
  - Path ids must be positive integers
  - Every error uses the {"detail", "error_type"} shape
"""

import pytest


class TestAccountRequestValidation:
    async def test_missing_initial_balance(self, client):
        response = await client.post("/accounts", json={"account_id": 1})
        assert response.status_code == 400
        assert response.json() == {
            "detail": "initial_balance is required",
            "error_type": "validation_error",
        }

    async def test_non_numeric_initial_balance(self, client):
        response = await client.post(
            "/accounts", json={"account_id": 1, "initial_balance": "lots"}
        )
        assert response.status_code == 400
        assert response.json() == {
            "detail": "initial_balance must be numeric",
            "error_type": "validation_error",
        }

    async def test_numeric_balance_must_be_a_string(self, client):
        response = await client.post(
            "/accounts", json={"account_id": 1, "initial_balance": 100.5}
        )
        assert response.status_code == 400
        assert response.json() == {
            "detail": "initial_balance must be a string",
            "error_type": "validation_error",
        }

    @pytest.mark.parametrize("account_id", [0, -3])
    async def test_account_id_must_be_positive(self, client, account_id):
        response = await client.post(
            "/accounts", json={"account_id": account_id, "initial_balance": "1"}
        )
        assert response.status_code == 400
        assert response.json() == {
            "detail": "account_id is too small",
            "error_type": "validation_error",
        }

    @pytest.mark.parametrize("account_id", [2**63, 10**20])
    async def test_account_id_must_fit_bigint(self, client, account_id):
        response = await client.post(
            "/accounts", json={"account_id": account_id, "initial_balance": "1"}
        )
        assert response.status_code == 400
        assert response.json() == {
            "detail": "account_id is too large",
            "error_type": "validation_error",
        }

    async def test_largest_bigint_account_id(self, client):
        account_id = 2**63 - 1
        response = await client.post(
            "/accounts", json={"account_id": account_id, "initial_balance": "1"}
        )
        assert response.status_code == 201

        response = await client.get(f"/accounts/{account_id}")
        assert response.json() == {"account_id": account_id, "balance": "1.00"}

    @pytest.mark.parametrize("balance", [".5", "١٢٣", "1e3"])
    async def test_balance_outside_numeric_grammar(self, client, balance):
        response = await client.post(
            "/accounts", json={"account_id": 1, "initial_balance": balance}
        )
        assert response.status_code == 400
        assert response.json() == {
            "detail": "initial_balance must be numeric",
            "error_type": "validation_error",
        }

    @pytest.mark.parametrize("account_id", ["1", 1.5, True])
    async def test_account_id_must_be_an_integer(self, client, account_id):
        response = await client.post(
            "/accounts", json={"account_id": account_id, "initial_balance": "1"}
        )
        assert response.status_code == 400
        assert response.json() == {
            "detail": "account_id must be a positive integer",
            "error_type": "validation_error",
        }


class TestTransferRequestValidation:
    async def test_same_account_rejected_by_schema(self, client):
        response = await client.post(
            "/transactions",
            json={"source_account_id": 4, "destination_account_id": 4, "amount": "1"},
        )
        assert response.status_code == 400
        assert response.json() == {
            "detail": "destination_account_id must be different from source_account_id",
            "error_type": "validation_error",
        }

    async def test_non_numeric_amount(self, client):
        response = await client.post(
            "/transactions",
            json={"source_account_id": 1, "destination_account_id": 2, "amount": "abc"},
        )
        assert response.status_code == 400
        assert response.json() == {
            "detail": "amount must be numeric",
            "error_type": "validation_error",
        }

    async def test_source_id_must_fit_bigint(self, client):
        response = await client.post(
            "/transactions",
            json={"source_account_id": 10**20, "destination_account_id": 2, "amount": "1"},
        )
        assert response.status_code == 400
        assert response.json() == {
            "detail": "source_account_id is too large",
            "error_type": "validation_error",
        }

    async def test_missing_destination(self, client):
        response = await client.post(
            "/transactions", json={"source_account_id": 1, "amount": "1"}
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "destination_account_id is required"


class TestMalformedBodies:
    async def test_invalid_json(self, client):
        response = await client.post(
            "/accounts",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json() == {
            "detail": "Invalid request format",
            "error_type": "invalid_request",
        }

    async def test_missing_body(self, client):
        response = await client.post("/transactions")
        assert response.status_code == 400
        assert response.json()["error_type"] == "invalid_request"

    async def test_body_is_not_an_object(self, client):
        response = await client.post("/accounts", json=[1, "100"])
        assert response.status_code == 400
        assert response.json()["error_type"] == "invalid_request"


class TestPathValidation:
    @pytest.mark.parametrize("path", ["/accounts/0", "/accounts/abc", "/transactions/-1"])
    async def test_path_id_must_be_positive_integer(self, client, path):
        response = await client.get(path)
        assert response.status_code == 400
        assert response.json()["error_type"] == "validation_error"

    @pytest.mark.parametrize("path", [f"/accounts/{2**63}", f"/transactions/{10**20}"])
    async def test_path_id_must_fit_bigint(self, client, path):
        response = await client.get(path)
        assert response.status_code == 400
        assert response.json()["error_type"] == "validation_error"
        assert response.json()["detail"].endswith("is too large")
