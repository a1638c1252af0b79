import numpy as np
import pandas as pd
import pytest

from trait_manifold.cache.manager import CacheManager, layout_key
from trait_manifold.core.manifold_store import ManifoldStore
from trait_manifold.core.projector import ForceProjector
from trait_manifold.core.similarity import cosine_similarity
from trait_manifold.embedders import DeterministicEmbedder
from trait_manifold.loaders import TraitsCsvLoader


class CountingProjector(ForceProjector):
    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.calls = 0

    def fit(self, vectors):
        self.calls += 1
        return super().fit(vectors)


@pytest.fixture
def store(tmp_path, trait_frame):
    store = ManifoldStore(
        dataset_loader=TraitsCsvLoader(frame=trait_frame),
        embedder=DeterministicEmbedder(),
        projector=CountingProjector(),
        cache_dir=tmp_path,
    )
    store.initialize()
    return store


def test_initialize_positions(store):
    assert store.is_initialized
    assert store.n_items == 6
    assert store.positions.shape == (6, 3)
    assert np.all(np.isfinite(store.positions))
    assert np.all(np.abs(store.positions) <= 15.0)
    assert np.allclose(store.get_position("n3"), store.positions[2])


def test_progress_callback(tmp_path, trait_frame):
    messages = []
    store = ManifoldStore(
        dataset_loader=TraitsCsvLoader(frame=trait_frame),
        embedder=DeterministicEmbedder(),
        cache_dir=tmp_path,
    )
    store.initialize(progress_callback=messages.append)
    assert messages[-1] == "Ready! 6 traits positioned."


def test_second_store_reuses_cache(tmp_path, trait_frame, store):
    again = ManifoldStore(
        dataset_loader=TraitsCsvLoader(frame=trait_frame),
        embedder=DeterministicEmbedder(),
        projector=CountingProjector(),
        cache_dir=tmp_path,
    )
    again.initialize()

    assert again.projector.calls == 0
    assert np.array_equal(again.positions, store.positions)
    assert again.items_df["communities"].tolist() == store.items_df["communities"].tolist()


def test_different_frames_do_not_share_cache(tmp_path, store):
    other = pd.DataFrame({
        "id": ["x1", "x2", "x3"],
        "label": ["Bronze casting", "Wheeled carts", "Wool textiles"],
        "communities": ["steppe", "steppe", "eef"],
    })
    again = ManifoldStore(
        dataset_loader=TraitsCsvLoader(frame=other),
        embedder=DeterministicEmbedder(),
        cache_dir=tmp_path,
    )
    again.initialize()

    assert again.items_df["id"].tolist() == ["x1", "x2", "x3"]
    assert again.positions.shape == (3, 3)


def test_force_rebuild_recomputes(tmp_path, trait_frame, store):
    again = ManifoldStore(
        dataset_loader=TraitsCsvLoader(frame=trait_frame),
        embedder=DeterministicEmbedder(),
        projector=CountingProjector(),
        cache_dir=tmp_path,
        force_rebuild=True,
    )
    again.initialize()

    assert again.projector.calls == 1
    # Same input, same layout
    assert np.array_equal(again.positions, store.positions)


def test_neighbors(store):
    result = store.neighbors("n1", k=3)

    assert len(result) == 3
    assert "n1" not in result["id"].tolist()
    assert list(result["similarity"]) == sorted(result["similarity"], reverse=True)


def test_neighbors_clamped_for_unnormalized_embedder(tmp_path, trait_frame):
    class ScaledEmbedder(DeterministicEmbedder):
        def embed(self, texts):
            return super().embed(texts) * 25.0

    store = ManifoldStore(
        dataset_loader=TraitsCsvLoader(frame=trait_frame),
        embedder=ScaledEmbedder(),
        cache_dir=tmp_path,
    )
    store.initialize()
    result = store.neighbors("n1", k=5)

    assert np.all(np.abs(result["similarity"]) <= 1.0)
    row_of = {id_: i for i, id_ in enumerate(store.items_df["id"])}
    expected = [cosine_similarity(store.embeddings[row_of[i]], store.embeddings[0]) for i in result["id"]]
    assert np.allclose(result["similarity"], expected)


def test_unknown_item(store):
    with pytest.raises(ValueError):
        store.get_item("missing")


def test_requires_initialize(tmp_path, trait_frame):
    store = ManifoldStore(
        dataset_loader=TraitsCsvLoader(frame=trait_frame),
        embedder=DeterministicEmbedder(),
        cache_dir=tmp_path,
    )
    with pytest.raises(RuntimeError):
        store.get_position("n1")
    assert store.get_cache_info() == {"status": "not initialized"}


def test_cluster_ellipsoids(store):
    ellipsoids = store.cluster_ellipsoids()

    assert list(ellipsoids) == ["whg", "eef", "steppe"]
    whg_members = store.positions[[0, 1, 3]]
    assert np.allclose(ellipsoids["whg"].centroid, whg_members.mean(axis=0))
    for ellipsoid in ellipsoids.values():
        assert np.all(ellipsoid.radii >= 3.2 - 1e-12)


def test_edges(store):
    segments = store.edges([("n1", "n2"), ("n2", "ghost")])

    assert len(segments) == 1
    assert segments[0]["start"] == store.positions[0].tolist()
    assert segments[0]["end"] == store.positions[1].tolist()


def test_cache_info_and_clear(store):
    info = store.get_cache_info()
    assert info["status"] == "complete"
    assert {"embeddings.npz", "items.csv", "layout.npz"} <= set(info["files"])

    store.clear_cache()
    assert store.get_cache_info()["status"] == "empty"


def test_layout_key_sensitivity(rng):
    vectors = rng.normal(size=(3, 4))
    key = layout_key(["a", "b", "c"], vectors)

    assert key == layout_key(["a", "b", "c"], vectors.copy())
    assert key != layout_key(["a", "c", "b"], vectors)
    changed = vectors.copy()
    changed[1, 2] += 1e-9
    assert key != layout_key(["a", "b", "c"], changed)


def test_cache_layout_mismatch(tmp_path):
    cache = CacheManager("demo", cache_dir=tmp_path)
    assert cache.load_layout("k1") is None

    cache.save_layout("k1", np.ones((2, 3)))
    assert np.array_equal(cache.load_layout("k1"), np.ones((2, 3)))
    assert cache.load_layout("k2") is None
