"""One-shot résumé writes: /complete and /complete-with-files."""
import json

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio

RESUMES = "/api/resumes"


async def test_create_complete(client: AsyncClient, auth_headers: dict, complete_payload: dict):
    response = await client.post(f"{RESUMES}/complete", json=complete_payload, headers=auth_headers)
    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "Backend resume"
    assert len(data["educations"]) == 1
    assert {e["companyName"] for e in data["experiences"]} == {"Naver", "Kakao"}
    assert len(data["skills"]) == 2
    assert data["portfolios"] == []


async def test_create_complete_basic_info_only(client: AsyncClient, auth_headers: dict, resume_payload: dict):
    response = await client.post(f"{RESUMES}/complete", json={"basicInfo": resume_payload}, headers=auth_headers)
    assert response.status_code == 201
    assert response.json()["skills"] == []


async def test_create_complete_invalid_child_creates_nothing(
    client: AsyncClient, auth_headers: dict, complete_payload: dict
):
    complete_payload["skills"].append({"skillName": "Go"})
    response = await client.post(f"{RESUMES}/complete", json=complete_payload, headers=auth_headers)
    assert response.status_code == 422
    assert (await client.get(RESUMES, headers=auth_headers)).json() == []


async def test_update_complete_replaces_children(
    client: AsyncClient, auth_headers: dict, resume: dict, complete_payload: dict
):
    old_ids = {e["id"] for e in resume["experiences"]}
    complete_payload["basicInfo"]["name"] = "Renamed"
    complete_payload["experiences"] = complete_payload["experiences"][:1]
    complete_payload["skills"] = []

    response = await client.put(f"{RESUMES}/{resume['id']}/complete", json=complete_payload, headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["id"] == resume["id"]
    assert data["name"] == "Renamed"
    assert [e["companyName"] for e in data["experiences"]] == ["Naver"]
    assert data["experiences"][0]["id"] not in old_ids
    assert data["skills"] == []
    assert len(data["educations"]) == 1


async def test_update_complete_keeps_portfolios(
    client: AsyncClient, auth_headers: dict, resume: dict, complete_payload: dict
):
    await client.post(
        f"{RESUMES}/{resume['id']}/portfolios",
        files={"file": ("keep.pdf", b"keep me", "application/pdf")},
        headers=auth_headers,
    )
    response = await client.put(f"{RESUMES}/{resume['id']}/complete", json=complete_payload, headers=auth_headers)
    assert [p["originalName"] for p in response.json()["portfolios"]] == ["keep.pdf"]


async def test_create_complete_with_files(
    client: AsyncClient, auth_headers: dict, complete_payload: dict, object_store
):
    response = await client.post(
        f"{RESUMES}/complete-with-files",
        data={"data": json.dumps(complete_payload)},
        files=[
            ("files", ("portfolio.pdf", b"%PDF-1.4 one", "application/pdf")),
            ("files", ("screenshot.png", b"\x89PNG two", "image/png")),
        ],
        headers=auth_headers,
    )

    assert response.status_code == 201, response.text
    data = response.json()
    assert len(data["experiences"]) == 2
    portfolios = {p["originalName"]: p for p in data["portfolios"]}
    assert set(portfolios) == {"portfolio.pdf", "screenshot.png"}
    assert portfolios["screenshot.png"]["mimeType"] == "image/png"
    assert portfolios["portfolio.pdf"]["fileSize"] == len(b"%PDF-1.4 one")
    assert portfolios["portfolio.pdf"]["fileUrl"].startswith("memory://portfolios/")

    key = f"portfolios/{data['id']}/portfolio.pdf"
    assert object_store.objects[key] == (b"%PDF-1.4 one", "application/pdf")


async def test_create_complete_with_files_without_files(
    client: AsyncClient, auth_headers: dict, complete_payload: dict
):
    response = await client.post(
        f"{RESUMES}/complete-with-files",
        data={"data": json.dumps(complete_payload)},
        headers=auth_headers,
    )
    assert response.status_code == 201, response.text
    assert response.json()["portfolios"] == []


async def test_create_complete_with_files_bad_json(client: AsyncClient, auth_headers: dict):
    response = await client.post(
        f"{RESUMES}/complete-with-files",
        data={"data": "{not json"},
        headers=auth_headers,
    )
    assert response.status_code == 422


async def test_create_complete_with_files_invalid_data(
    client: AsyncClient, auth_headers: dict, complete_payload: dict
):
    del complete_payload["basicInfo"]["gender"]
    response = await client.post(
        f"{RESUMES}/complete-with-files",
        data={"data": json.dumps(complete_payload)},
        headers=auth_headers,
    )
    assert response.status_code == 422
    assert "gender" in response.json()["detail"]


async def test_update_complete_with_files_upserts_by_name(
    client: AsyncClient, auth_headers: dict, resume: dict, complete_payload: dict, object_store
):
    url = f"{RESUMES}/{resume['id']}/complete-with-files"
    first = await client.put(
        url,
        data={"data": json.dumps(complete_payload)},
        files=[("files", ("cv.pdf", b"version one", "application/pdf"))],
        headers=auth_headers,
    )
    assert first.status_code == 200, first.text
    (original,) = first.json()["portfolios"]

    second = await client.put(
        url,
        data={"data": json.dumps(complete_payload)},
        files=[
            ("files", ("cv.pdf", b"version two!", "application/pdf")),
            ("files", ("extra.txt", b"notes", "text/plain")),
        ],
        headers=auth_headers,
    )

    assert second.status_code == 200, second.text
    portfolios = {p["originalName"]: p for p in second.json()["portfolios"]}
    assert set(portfolios) == {"cv.pdf", "extra.txt"}
    assert portfolios["cv.pdf"]["id"] == original["id"]
    assert portfolios["cv.pdf"]["fileSize"] == len(b"version two!")
    assert object_store.objects[f"portfolios/{resume['id']}/cv.pdf"][0] == b"version two!"


async def test_update_complete_other_users_resume(
    client: AsyncClient, resume: dict, complete_payload: dict, user_factory
):
    intruder = await user_factory("intruder@example.com")
    response = await client.put(f"{RESUMES}/{resume['id']}/complete", json=complete_payload, headers=intruder)
    assert response.status_code == 401
