import pytest

from naicli.archive import ArchiveEntry
from naicli.commands.suggest_tags import TagRow, extract_rows, format_tag_table, suggestion_data
from naicli.errors import ValidationError
from naicli.response import JsonResponse, PngResponse, ZipResponse


def test_suggestion_data_returns_json_payload():
    assert suggestion_data(JsonResponse(data={"tags": []})) == {"tags": []}


@pytest.mark.parametrize(
    "response",
    [PngResponse(image=b"\x89PNG"), ZipResponse(images=[ArchiveEntry("a.png", b"")])],
)
def test_suggestion_data_rejects_image_responses(response):
    with pytest.raises(ValidationError, match=f"non-JSON \\({response.kind}\\)"):
        suggestion_data(response)


def test_extract_rows_from_list_and_object():
    assert extract_rows(["cat", {"name": "dog", "score": 0.5}, {"other": 1}, 3]) == [
        TagRow(tag="cat"),
        TagRow(tag="dog", confidence="0.5000"),
    ]
    assert extract_rows({"tags": [{"text": "cat", "confidence": True}]}) == [TagRow(tag="cat")]
    assert extract_rows({"unexpected": []}) == []


def test_format_tag_table():
    assert format_tag_table([]) == "No tags returned."
    lines = format_tag_table([TagRow("cat", "0.9000")]).splitlines()
    assert lines[1] == "-  ---  ----------"
