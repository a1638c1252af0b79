import pandas as pd
import pytest

from trait_manifold.loaders import TraitsCsvLoader, get_loader, list_loaders


def test_loads_frame_and_builds_text(trait_frame):
    df = TraitsCsvLoader(frame=trait_frame).load()

    assert {"id", "label", "text", "communities"} <= set(df.columns)
    assert len(df) == 6
    assert df.loc[0, "label"] == "Microlithic tools"
    assert df.loc[0, "text"] == "Microlithic tools. Small flint blades. technology"
    assert df.loc[3, "communities"] == ["eef", "whg"]
    assert df.loc[4, "communities"] == ["steppe"]


def test_loads_csv(tmp_path, trait_frame):
    path = tmp_path / "cultures.csv"
    trait_frame.to_csv(path, index=False)

    loader = TraitsCsvLoader(csv_path=path)
    df = loader.load()

    assert loader.name == "traits_cultures"
    assert df["id"].tolist() == ["n1", "n2", "n3", "n4", "n5", "n6"]


def test_inline_name_follows_content(trait_frame):
    a = TraitsCsvLoader(frame=trait_frame)
    b = TraitsCsvLoader(frame=trait_frame.copy())
    c = TraitsCsvLoader(frame=trait_frame.head(3))

    assert a.name.startswith("traits_inline_")
    assert a.name == b.name
    assert a.name != c.name


def test_missing_csv(tmp_path):
    with pytest.raises(FileNotFoundError):
        TraitsCsvLoader(csv_path=tmp_path / "missing.csv").load()


def test_generated_ids_and_missing_communities():
    df = TraitsCsvLoader(frame=pd.DataFrame({"label": ["Bronze casting", "Wheel"]})).load()

    assert df["id"].tolist() == ["trait_0", "trait_1"]
    assert df["text"].tolist() == ["Bronze casting", "Wheel"]
    assert df["communities"].tolist() == [[], []]


def test_explicit_text_column_kept():
    frame = pd.DataFrame({"text": ["Cattle herding across the steppe"], "community": ["steppe"]})
    df = TraitsCsvLoader(frame=frame).load()

    assert df.loc[0, "text"] == "Cattle herding across the steppe"
    assert df.loc[0, "label"] == "Cattle herding across the steppe"
    assert df.loc[0, "communities"] == ["steppe"]


def test_drops_empty_text():
    frame = pd.DataFrame({"id": ["a", "b", "c"], "text": ["Pottery", "   ", None]})
    df = TraitsCsvLoader(frame=frame).load()
    assert df["id"].tolist() == ["a"]


def test_requires_label_or_text():
    with pytest.raises(ValueError):
        TraitsCsvLoader(frame=pd.DataFrame({"weight": [1.0]})).load()


def test_rejects_duplicate_ids():
    frame = pd.DataFrame({"id": ["a", "a"], "label": ["Pottery", "Weaving"]})
    with pytest.raises(ValueError):
        TraitsCsvLoader(frame=frame).load()


def test_registry(trait_frame):
    assert "traits" in list_loaders()
    assert isinstance(get_loader("traits", frame=trait_frame), TraitsCsvLoader)
    with pytest.raises(ValueError):
        get_loader("poetry")
