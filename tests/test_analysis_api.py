from __future__ import annotations

from collections.abc import Callable

from fastapi.testclient import TestClient


def _build_portfolio(
    sectioned_document: Callable[..., tuple[dict, list[int]]],
    create_mapping: Callable[..., dict],
) -> tuple[dict, dict]:
    """Two documents: the first carries every mapping the assertions below rely on."""

    primary, sections = sectioned_document("primary.txt")
    # Understand: two fully and two partially aligned sections.
    for index, status in enumerate(["fully_aligned", "fully_aligned", "partially_aligned", "partially_aligned"]):
        create_mapping(primary["id"], 1, status, section_id=sections[index], maturity_level=index % 3 + 1)
    # Secure: one fully aligned section among six.
    create_mapping(primary["id"], 2, "fully_aligned", section_id=sections[0], maturity_level=1)
    for section_id in sections[1:]:
        create_mapping(primary["id"], 2, "not_aligned", section_id=section_id, maturity_level=1)

    secondary, secondary_sections = sectioned_document("secondary.txt", sentences=2)
    create_mapping(secondary["id"], 5, "fully_aligned", section_id=secondary_sections[0], maturity_level=3)
    return primary, secondary


def test_domain_coverage_without_mappings_is_null(client: TestClient, admin_headers: dict[str, str]) -> None:
    response = client.get("/analysis/domain-coverage", headers=admin_headers)

    assert response.status_code == 200
    rows = response.json()
    assert len(rows) == 5
    assert all(row["total_mappings"] == 0 for row in rows)
    assert all(row["alignment_percentage"] is None for row in rows)


def test_domain_coverage_percentages(
    client: TestClient,
    admin_headers: dict[str, str],
    sectioned_document: Callable[..., tuple[dict, list[int]]],
    create_mapping: Callable[..., dict],
) -> None:
    primary, _secondary = _build_portfolio(sectioned_document, create_mapping)

    rows = client.get(
        "/analysis/domain-coverage", params={"document_ids": str(primary["id"])}, headers=admin_headers
    ).json()
    by_code = {row["domain_code"]: row for row in rows}

    assert len(rows) == 5
    assert by_code["UNDERSTAND"]["alignment_percentage"] == 75.0
    assert by_code["UNDERSTAND"]["fully_aligned"] == 2
    assert by_code["UNDERSTAND"]["partially_aligned"] == 2
    assert by_code["SECURE"]["alignment_percentage"] == 16.67
    assert by_code["SECURE"]["not_aligned"] == 5
    assert by_code["SUSTAIN"]["total_mappings"] == 0
    assert by_code["SUSTAIN"]["alignment_percentage"] is None

    everything = client.get("/analysis/domain-coverage", headers=admin_headers).json()
    assert {row["domain_code"]: row["total_mappings"] for row in everything}["SUSTAIN"] == 1


def test_gap_matrix_has_a_cell_per_domain_and_document(
    client: TestClient,
    admin_headers: dict[str, str],
    sectioned_document: Callable[..., tuple[dict, list[int]]],
    create_mapping: Callable[..., dict],
) -> None:
    primary, secondary = _build_portfolio(sectioned_document, create_mapping)

    cells = client.get(
        "/analysis/gap-matrix",
        params={"document_ids": f"{primary['id']},{secondary['id']}"},
        headers=admin_headers,
    ).json()

    assert len(cells) == 10
    assert [cell["domain_id"] for cell in cells] == [1, 1, 2, 2, 3, 3, 4, 4, 5, 5]
    lookup = {(cell["domain_code"], cell["document_name"]): cell for cell in cells}
    assert lookup[("SECURE", "primary.txt")]["coverage_status"] == "strong_coverage"
    assert lookup[("SECURE", "primary.txt")]["total_mappings"] == 6
    assert lookup[("SECURE", "secondary.txt")]["coverage_status"] == "no_coverage"
    assert lookup[("SUSTAIN", "secondary.txt")]["coverage_status"] == "strong_coverage"

    single = client.get(
        "/analysis/gap-matrix", params={"document_ids": str(secondary["id"])}, headers=admin_headers
    ).json()
    assert len(single) == 5


def test_coverage_and_gap_status_disagree_for_sparse_alignment(
    client: TestClient,
    admin_headers: dict[str, str],
    sectioned_document: Callable[..., tuple[dict, list[int]]],
    create_mapping: Callable[..., dict],
) -> None:
    primary, _secondary = _build_portfolio(sectioned_document, create_mapping)
    params = {"document_ids": str(primary["id"])}

    cells = client.get("/analysis/gap-matrix", params=params, headers=admin_headers).json()
    gaps = client.get("/reports/gap-analysis", params=params, headers=admin_headers).json()["gap_analysis"]

    secure_cell = next(cell for cell in cells if cell["domain_code"] == "SECURE")
    secure_gap = next(row for row in gaps if row["domain_code"] == "SECURE")
    assert secure_cell["coverage_status"] == "strong_coverage"
    assert secure_gap["gap_status"] == "critical_gap"


def test_maturity_distribution_lists_occurring_levels(
    client: TestClient,
    admin_headers: dict[str, str],
    sectioned_document: Callable[..., tuple[dict, list[int]]],
    create_mapping: Callable[..., dict],
) -> None:
    primary, _secondary = _build_portfolio(sectioned_document, create_mapping)

    rows = client.get(
        "/analysis/maturity-distribution", params={"document_ids": str(primary["id"])}, headers=admin_headers
    ).json()

    assert rows == [
        {"domain_id": 1, "domain_name": "Understand", "maturity_level": 1, "count": 2},
        {"domain_id": 1, "domain_name": "Understand", "maturity_level": 2, "count": 1},
        {"domain_id": 1, "domain_name": "Understand", "maturity_level": 3, "count": 1},
        {"domain_id": 2, "domain_name": "Secure", "maturity_level": 1, "count": 6},
    ]


def test_areas_of_concern(
    client: TestClient,
    admin_headers: dict[str, str],
    sectioned_document: Callable[..., tuple[dict, list[int]]],
    create_mapping: Callable[..., dict],
) -> None:
    primary, _secondary = _build_portfolio(sectioned_document, create_mapping)

    rows = client.get(
        "/analysis/areas-of-concern", params={"document_ids": str(primary["id"])}, headers=admin_headers
    ).json()

    assert [row["domain_name"] for row in rows] == ["Expose", "Recover", "Sustain", "Secure"]


def test_analysis_rejects_malformed_document_ids(client: TestClient, admin_headers: dict[str, str]) -> None:
    response = client.get("/analysis/domain-coverage", params={"document_ids": "1,abc"}, headers=admin_headers)

    assert response.status_code == 400
