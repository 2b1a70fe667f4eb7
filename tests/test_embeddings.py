"""Tests for OpenAI embeddings generation."""

from unittest.mock import MagicMock, patch

import pytest

from app.core.embeddings import embed_text, embed_texts, embed_texts_async, embed_texts_batched


def _embedding_item(value: float, index: int | None = None, dim: int = 1536):
    item = MagicMock()
    item.embedding = [value] * dim
    if index is not None:
        item.index = index
    return item


def _response(*items):
    response = MagicMock()
    response.data = list(items)
    return response


@pytest.fixture
def mock_client():
    with patch("app.core.embeddings._get_client") as mock_get_client:
        client = MagicMock()
        mock_get_client.return_value = client
        yield client


def test_embed_texts_empty_skips_api(mock_client):
    assert embed_texts([]) == []
    mock_client.embeddings.create.assert_not_called()


def test_embed_texts_success(mock_client):
    mock_client.embeddings.create.return_value = _response(_embedding_item(0.1, 0), _embedding_item(0.2, 1))

    embeddings = embed_texts(["first", "second"])

    assert len(embeddings) == 2
    assert embeddings[0][0] == 0.1
    assert embeddings[1][0] == 0.2

    call = mock_client.embeddings.create.call_args
    assert call.kwargs["model"] == "text-embedding-3-small"
    assert call.kwargs["input"] == ["first", "second"]
    assert call.kwargs["dimensions"] == 1536


def test_embed_texts_orders_by_reported_index(mock_client):
    """Vectors come back in input order even if the API shuffles them."""
    mock_client.embeddings.create.return_value = _response(
        _embedding_item(0.3, 2), _embedding_item(0.1, 0), _embedding_item(0.2, 1)
    )

    embeddings = embed_texts(["a", "b", "c"])

    assert [vector[0] for vector in embeddings] == [0.1, 0.2, 0.3]


def test_embed_texts_dimension_mismatch(mock_client):
    mock_client.embeddings.create.return_value = _response(_embedding_item(0.1, 0, dim=512))

    with pytest.raises(ValueError, match="dimension mismatch"):
        embed_texts(["text"])


def test_embed_texts_count_mismatch(mock_client):
    mock_client.embeddings.create.return_value = _response(_embedding_item(0.1, 0))

    with pytest.raises(ValueError, match="count mismatch"):
        embed_texts(["a", "b"])


def test_embed_texts_api_error_propagates(mock_client):
    mock_client.embeddings.create.side_effect = RuntimeError("API down")

    with pytest.raises(RuntimeError, match="API down"):
        embed_texts(["text"])


def test_embed_text_single(mock_client):
    mock_client.embeddings.create.return_value = _response(_embedding_item(0.5, 0))
    assert embed_text("hello") == [0.5] * 1536


def test_embed_texts_batched_splits_requests():
    with patch("app.core.embeddings.embed_texts") as mock_embed:
        mock_embed.side_effect = lambda batch: [[float(len(t))] for t in batch]

        result = embed_texts_batched(["a", "bb", "ccc", "dddd", "eeeee"], batch_size=2)

    assert result == [[1.0], [2.0], [3.0], [4.0], [5.0]]
    assert [call.args[0] for call in mock_embed.call_args_list] == [["a", "bb"], ["ccc", "dddd"], ["eeeee"]]


def test_embed_texts_batched_clamps_batch_size():
    texts = [f"t{i}" for i in range(300)]
    with patch("app.core.embeddings.embed_texts") as mock_embed:
        mock_embed.side_effect = lambda batch: [[0.0] for _ in batch]

        assert len(embed_texts_batched(texts, batch_size=1000)) == 300
        assert [len(call.args[0]) for call in mock_embed.call_args_list] == [128, 128, 44]

        mock_embed.reset_mock()
        embed_texts_batched(texts[:3], batch_size=0)
        assert mock_embed.call_count == 3


def test_embed_texts_batched_empty():
    with patch("app.core.embeddings.embed_texts") as mock_embed:
        assert embed_texts_batched([]) == []
        mock_embed.assert_not_called()


@pytest.mark.asyncio
async def test_embed_texts_async(mock_client):
    mock_client.embeddings.create.return_value = _response(_embedding_item(0.7, 0))

    embeddings = await embed_texts_async(["async text"])

    assert embeddings[0][0] == 0.7
