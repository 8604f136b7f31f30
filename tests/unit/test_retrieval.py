"""Unit tests for the retrieval layer — prompts, Chroma backend, AnswerPipeline."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from langchain_core.messages import HumanMessage, SystemMessage

from fakes import FakeEmbeddings, FakeStreamingLLM, FakeVectorStore, make_chunks
from pdf_chatbot.errors import ValidationError
from pdf_chatbot.retrieval.chroma_store import ChromaVectorStore, distance_to_score
from pdf_chatbot.retrieval.models import AnswerEvent, RetrievalMatch, VectorRecord
from pdf_chatbot.retrieval.pipeline import AnswerPipeline
from pdf_chatbot.retrieval.prompts import (
    NO_CONTEXT_PLACEHOLDER,
    SYSTEM_PROMPT,
    build_context,
    build_rag_prompt,
)

SAMPLE_MATCHES = [
    RetrievalMatch(id="chunk-3", text="Refunds are issued within 30 days.", score=0.92),
    RetrievalMatch(id="chunk-7", text="", score=0.81),
    RetrievalMatch(id="chunk-1", text="Contact support for returns.", score=0.64),
]


def _pipeline(
    llm: FakeStreamingLLM,
    *,
    store: FakeVectorStore | None = None,
    embeddings: FakeEmbeddings | None = None,
) -> AnswerPipeline:
    return AnswerPipeline(
        embeddings or FakeEmbeddings(),
        store or FakeVectorStore(matches=SAMPLE_MATCHES),
        llm,
        namespace="test-ns",
        top_k=5,
    )


async def _collect(pipeline: AnswerPipeline, question: str) -> list[AnswerEvent]:
    return [event async for event in pipeline.stream(question)]


# ── Prompt construction ────────────────────────────────────────────────


class TestPrompts:
    def test_context_joins_texts_in_store_order(self) -> None:
        context = build_context(SAMPLE_MATCHES)
        assert context == "Refunds are issued within 30 days.\nContact support for returns.\n"

    def test_context_placeholder_when_no_text(self) -> None:
        assert build_context([]) == NO_CONTEXT_PLACEHOLDER
        assert build_context([RetrievalMatch(id="x", text="   ")]) == NO_CONTEXT_PLACEHOLDER

    def test_rag_prompt_shape(self) -> None:
        messages = build_rag_prompt("When do refunds arrive?", "ctx line\n")
        assert isinstance(messages[0], SystemMessage)
        assert isinstance(messages[1], HumanMessage)
        assert messages[0].content == SYSTEM_PROMPT
        assert messages[1].content == "ctx line\n\nQuestion: When do refunds arrive?\nAnswer:"


# ── Chroma backend ─────────────────────────────────────────────────────


class TestChromaVectorStore:
    @pytest.fixture()
    def client(self) -> MagicMock:
        client = MagicMock()
        client.get_or_create_collection.return_value.query.return_value = {
            "ids": [["chunk-0", "chunk-1"]],
            "distances": [[0.1, 0.4]],
            "documents": [["first", "second"]],
            "metadatas": [[{"text": "first"}, {"text": "second"}]],
        }
        return client

    def test_namespace_maps_to_collection(self, client: MagicMock) -> None:
        store = ChromaVectorStore(client=client, distance_metric="cosine")
        store.upsert("pdf-chatbot", [VectorRecord(id="chunk-0", values=[0.1, 0.2], metadata={"text": "hi"})])
        client.get_or_create_collection.assert_called_once_with(
            name="pdf-chatbot", metadata={"hnsw:space": "cosine"}
        )

    def test_upsert_sends_ids_vectors_and_text(self, client: MagicMock) -> None:
        store = ChromaVectorStore(client=client)
        records = [
            VectorRecord(id="chunk-0", values=[0.1], metadata={"text": "a"}),
            VectorRecord(id="chunk-1", values=[0.2], metadata={"text": "b", "nested": {"x": 1}}),
        ]
        store.upsert("ns", records)
        collection = client.get_or_create_collection.return_value
        collection.upsert.assert_called_once_with(
            ids=["chunk-0", "chunk-1"],
            embeddings=[[0.1], [0.2]],
            documents=["a", "b"],
            metadatas=[{"text": "a"}, {"text": "b"}],
        )

    def test_upsert_of_nothing_skips_the_call(self, client: MagicMock) -> None:
        ChromaVectorStore(client=client).upsert("ns", [])
        client.get_or_create_collection.assert_not_called()

    def test_query_returns_scored_matches_in_order(self, client: MagicMock) -> None:
        store = ChromaVectorStore(client=client, distance_metric="cosine")
        matches = store.query("ns", [0.1, 0.2], top_k=2)
        assert [m.text for m in matches] == ["first", "second"]
        assert matches[0].score == pytest.approx(0.9)
        assert matches[1].score == pytest.approx(0.6)
        kwargs = client.get_or_create_collection.return_value.query.call_args.kwargs
        assert kwargs["n_results"] == 2
        assert set(kwargs["include"]) == {"distances", "documents", "metadatas"}

    def test_collection_is_cached_per_namespace(self, client: MagicMock) -> None:
        store = ChromaVectorStore(client=client)
        store.query("ns", [0.0])
        store.query("ns", [0.0])
        assert client.get_or_create_collection.call_count == 1

    def test_health_check_reports_failure(self, client: MagicMock) -> None:
        client.heartbeat.side_effect = ConnectionError("down")
        assert ChromaVectorStore(client=client).health_check() is False

    def test_l2_distance_score(self) -> None:
        assert distance_to_score(0.0, "l2") == 1.0
        assert distance_to_score(1.0, "l2") == 0.5


# ── AnswerPipeline ─────────────────────────────────────────────────────


class TestAnswerPipeline:
    @pytest.mark.asyncio
    async def test_streams_tokens_then_done(self) -> None:
        llm = FakeStreamingLLM(make_chunks("Within", " 30", " days."))
        events = await _collect(_pipeline(llm), "When do refunds arrive?")

        assert [e.text for e in events if e.type == "token"] == ["Within", " 30", " days."]
        assert events[-1] == AnswerEvent.done("stop")
        assert sum(e.is_terminal for e in events) == 1

    @pytest.mark.asyncio
    async def test_stops_at_finish_reason(self) -> None:
        chunks = make_chunks("Yes.") + make_chunks("ignored", finish_reason=None)
        events = await _collect(_pipeline(FakeStreamingLLM(chunks)), "Anything?")
        assert [e.text for e in events if e.type == "token"] == ["Yes."]

    @pytest.mark.asyncio
    async def test_stream_end_without_finish_reason_is_done(self) -> None:
        llm = FakeStreamingLLM(make_chunks("partial", finish_reason=None))
        events = await _collect(_pipeline(llm), "Q?")
        assert events[-1].type == "done"
        assert events[-1].finish_reason is None

    @pytest.mark.asyncio
    async def test_prompt_uses_retrieved_context_and_question(self) -> None:
        llm = FakeStreamingLLM(make_chunks("ok"))
        store = FakeVectorStore(matches=SAMPLE_MATCHES)
        await _collect(_pipeline(llm, store=store), "When do refunds arrive?")

        system, user = llm.prompts[0]
        assert system.content == SYSTEM_PROMPT
        assert "Refunds are issued within 30 days." in user.content
        assert user.content.endswith("Question: When do refunds arrive?\nAnswer:")
        assert store.queries[0]["namespace"] == "test-ns"
        assert store.queries[0]["top_k"] == 5
        assert store.queries[0]["include_metadata"] is True

    @pytest.mark.asyncio
    async def test_question_embedded_once(self) -> None:
        embeddings = FakeEmbeddings()
        await _collect(_pipeline(FakeStreamingLLM(make_chunks("ok")), embeddings=embeddings), "Q?")
        assert embeddings.calls == [["Q?"]]

    @pytest.mark.asyncio
    async def test_no_matches_uses_placeholder_and_still_finishes(self) -> None:
        llm = FakeStreamingLLM(make_chunks("I don't know."))
        events = await _collect(_pipeline(llm, store=FakeVectorStore(matches=[])), "Q?")
        assert NO_CONTEXT_PLACEHOLDER in llm.prompts[0][1].content
        assert events[-1].type == "done"

    @pytest.mark.asyncio
    async def test_embedding_failure_becomes_error_event(self) -> None:
        llm = FakeStreamingLLM(make_chunks("never"))
        events = await _collect(_pipeline(llm, embeddings=FakeEmbeddings(fail_on=1)), "Q?")
        assert len(events) == 1
        assert events[0].type == "error"
        assert "rate limited" in events[0].reason
        assert llm.prompts == []

    @pytest.mark.asyncio
    async def test_store_failure_becomes_error_event(self) -> None:
        events = await _collect(
            _pipeline(FakeStreamingLLM(), store=FakeVectorStore(fail=True)), "Q?"
        )
        assert [e.type for e in events] == ["error"]

    @pytest.mark.asyncio
    async def test_mid_stream_failure_keeps_tokens_then_error(self) -> None:
        llm = FakeStreamingLLM(make_chunks("one", "two", "three"), fail_after=2)
        events = await _collect(_pipeline(llm), "Q?")
        assert [e.type for e in events] == ["token", "token", "error"]
        assert "connection reset" in events[-1].reason

    def test_blank_question_rejected_before_streaming(self) -> None:
        pipeline = _pipeline(FakeStreamingLLM())
        with pytest.raises(ValidationError):
            pipeline.stream("   ")
        with pytest.raises(ValidationError):
            pipeline.stream(None)

    @pytest.mark.asyncio
    async def test_answer_collects_text_and_terminal_event(self) -> None:
        text, terminal = await _pipeline(FakeStreamingLLM(make_chunks("Hi", " there"))).answer("Q?")
        assert text == "Hi there"
        assert terminal.type == "done"
