import pytest

from oneapigw.models import Model, list_models, retrieve_model


def test_list_models_sorted_with_random_last():
    body = list_models({"zeta": "zeta", "alpha": "alpha"}, now=100)
    assert body["object"] == "list"
    assert [entry["id"] for entry in body["data"]] == ["alpha", "zeta", "random"]
    assert all(entry["created"] == 100 for entry in body["data"])
    assert all(entry["owned_by"] == "openai" for entry in body["data"])
    assert all(entry["object"] == "model" for entry in body["data"])


def test_list_models_empty_raises():
    with pytest.raises(LookupError):
        list_models({}, now=1)


def test_list_models_uses_current_time_by_default():
    body = list_models({"m": "m"})
    assert body["data"][0]["created"] > 0


def test_retrieve_known_model():
    model = retrieve_model({"glm-4": []}, "glm-4", now=42)
    assert model == Model("gpt-3.5-turbo-instruct", 42)
    assert model.to_dict()["id"] == "gpt-3.5-turbo-instruct"


def test_retrieve_unknown_model_raises():
    with pytest.raises(LookupError):
        retrieve_model({"glm-4": []}, "missing", now=1)