"""
BrainService - Semantic index over the creator's hooks, scripts and CTAs.

Indexing splits each video into chunks, embeds them with OpenAI
text-embedding-3-small (source language plus an English translation) and
stores them in tiktok_brain_vectors together with the video's metrics.
Search ranks stored chunks by cosine similarity blended with performance.

Architecture:
    CLI -> BrainService -> OpenAI embeddings / chat + Supabase
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np
from openai import OpenAI
from supabase import Client

from ..core.config import Config
from ..core.database import get_supabase_client, get_creator_user_id
from ..core.models import Video
from .metrics_service import safe_ratio
from .models import BrainChunk, BrainSearchResult
from .video_service import VideoService

logger = logging.getLogger(__name__)

VECTORS_TABLE = "tiktok_brain_vectors"

MIN_CHUNK_LENGTH = 15
DUPLICATE_THRESHOLD = 0.95
SPANISH_RATIO_THRESHOLD = 0.1

# Ranking weights
SIMILARITY_WEIGHT = 0.7
SAVES_WEIGHT = 0.2
FOLLOWS_WEIGHT = 0.1
SAVES_CAP = 100.0
FOLLOWS_CAP = 50.0

SPANISH_WORDS = frozenset("""
el la de que y en un es se no te lo le da su por son con para al del está una cuando muy sin
sobre también me hasta hay donde quien desde todo nos durante todos uno les ni contra otros ese
eso ante ellos e esto mí antes algunos qué unos yo otro otras otra él tanto esa estos mucho
quienes nada muchos cual poco ella estar estas algunas algo nosotros mi mis tú ti tu tus ellas
nosotras vosotros vosotras os mío mía míos mías tuyo tuya tuyos tuyas suyo suya suyos suyas
nuestro nuestra nuestros nuestras vuestro vuestra vuestros vuestras esos esas
""".split())

TRANSLATE_PROMPT = (
    "Translate the following text to English. Preserve the meaning and tone. "
    "Return only the translation."
)


# ============================================================================
# Text helpers
# ============================================================================

def detect_language(text: str) -> str:
    """'es' when more than 10% of the words are common Spanish words, else 'en'."""
    words = text.lower().split()
    if not words:
        return "en"
    spanish = sum(1 for w in words if w in SPANISH_WORDS)
    return "es" if spanish / len(words) > SPANISH_RATIO_THRESHOLD else "en"


def text_similarity(a: str, b: str) -> float:
    """Jaccard similarity of the lower-cased word sets."""
    words_a = set(a.lower().split())
    words_b = set(b.lower().split())
    union = words_a | words_b
    if not union:
        return 0.0
    return len(words_a & words_b) / len(union)


def _sentences(script: str) -> List[str]:
    return [s.strip() for s in re.split(r"[.!?]+", script)]


def extract_chunks(video: Video) -> List[BrainChunk]:
    """
    Split a video into indexable chunks.

    - hook: the hook line as-is
    - setup / proof: the first 40% and the 40-80% slice of the script's
      sentences longer than 15 characters
    - cta: the script's last two sentences when the video has a CTA type
    """
    chunks: List[BrainChunk] = []

    if video.hook and video.hook.strip():
        chunks.append(BrainChunk(content_type="hook", section_tag="hook_0_3s", content=video.hook.strip()))

    script = (video.guion or "").strip()
    if script:
        sentences = [s for s in _sentences(script) if len(s) > MIN_CHUNK_LENGTH]
        if sentences:
            n = len(sentences)
            setup_end = -(-n * 4 // 10)
            proof_end = -(-n * 8 // 10)

            setup = sentences[:setup_end]
            if setup:
                chunks.append(BrainChunk(
                    content_type="guion", section_tag="setup", content=". ".join(setup) + "."
                ))

            if n > 2:
                proof = sentences[setup_end:proof_end]
                if proof:
                    chunks.append(BrainChunk(
                        content_type="guion", section_tag="proof", content=". ".join(proof) + "."
                    ))

    if video.cta_type and video.cta_type != "none":
        closing = ". ".join(_sentences(script)[-2:]).strip()
        if len(closing) > MIN_CHUNK_LENGTH:
            chunks.append(BrainChunk(content_type="cta", section_tag="cta_strong", content=closing))

    return chunks


def _parse_vector(value: Any) -> Optional[np.ndarray]:
    """pgvector columns come back as '[0.1,0.2,...]' strings."""
    if value is None:
        return None
    if isinstance(value, str):
        value = json.loads(value)
    return np.asarray(value, dtype=float)


def cosine_similarities(query: np.ndarray, matrix: np.ndarray) -> np.ndarray:
    """Cosine similarity of one vector against every row of a matrix."""
    norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
    norms[norms == 0] = 1.0
    return matrix @ query / norms


def rank_score(similarity: float, saves_per_1k: float, f_per_1k: float) -> float:
    return (
        similarity * SIMILARITY_WEIGHT
        + min(saves_per_1k / SAVES_CAP, 1.0) * SAVES_WEIGHT
        + min(f_per_1k / FOLLOWS_CAP, 1.0) * FOLLOWS_WEIGHT
    )


# ============================================================================
# Service
# ============================================================================

class BrainService:
    """Index and search the creator's content chunks."""

    def __init__(
        self,
        supabase: Optional[Client] = None,
        user_id: Optional[str] = None,
        openai_api_key: Optional[str] = None,
        video_service: Optional[VideoService] = None
    ):
        self.supabase = supabase or get_supabase_client()
        self.user_id = get_creator_user_id(user_id)
        self.video_service = video_service or VideoService(self.supabase, self.user_id)

        api_key = openai_api_key or Config.OPENAI_API_KEY
        if not api_key:
            logger.warning("OPENAI_API_KEY not set - brain indexing and search will fail")
            self.openai = None
        else:
            self.openai = OpenAI(api_key=api_key)

        self.embedding_model = Config.get_model("embedding")
        self.translation_model = Config.get_model("translation")

    def _ensure_openai(self) -> None:
        if not self.openai:
            raise ValueError("OPENAI_API_KEY is not configured")

    # =========================================================================
    # Embeddings
    # =========================================================================

    def generate_embedding(self, text: str) -> List[float]:
        self._ensure_openai()
        response = self.openai.embeddings.create(model=self.embedding_model, input=text)
        return response.data[0].embedding

    def translate_to_english(self, text: str) -> str:
        """Translate via chat; returns the input unchanged when the call yields nothing."""
        self._ensure_openai()
        response = self.openai.chat.completions.create(
            model=self.translation_model,
            messages=[
                {"role": "system", "content": TRANSLATE_PROMPT},
                {"role": "user", "content": text},
            ],
            max_tokens=500,
            temperature=0.1,
        )
        translated = (response.choices[0].message.content or "").strip()
        return translated or text

    def generate_bilingual_embeddings(self, text: str, language: str) -> Tuple[List[float], List[float]]:
        """
        (source embedding, English embedding).

        English text is embedded once and reused for both.
        """
        source = self.generate_embedding(text)
        if language == "en":
            return source, source
        return source, self.generate_embedding(self.translate_to_english(text))

    # =========================================================================
    # Indexing
    # =========================================================================

    def _existing_chunks(self) -> List[Dict[str, Any]]:
        result = self.supabase.table(VECTORS_TABLE).select("id, content").eq(
            "user_id", self.user_id
        ).eq("is_duplicate", False).execute()
        return result.data or []

    @staticmethod
    def find_duplicate(content: str, existing: Sequence[Dict[str, Any]]) -> Tuple[bool, float]:
        """(is_duplicate, similarity) against already-indexed chunks."""
        for row in existing:
            similarity = text_similarity(content, row.get("content") or "")
            if similarity > DUPLICATE_THRESHOLD:
                return True, similarity
        return False, 0.0

    @staticmethod
    def video_metrics(video: Video) -> Dict[str, float]:
        """Metrics stored alongside every chunk of a video."""
        return {
            "retention_pct": video.full_video_watch_rate,
            "saves_per_1k": safe_ratio(video.saves, video.views, 1000),
            "f_per_1k": safe_ratio(video.new_followers, video.views, 1000),
            "for_you_pct": safe_ratio(video.traffic_for_you, video.views, 100),
        }

    def index_video(self, video: Video) -> int:
        """
        (Re)index one video.

        Existing vectors for the video are deleted first. A chunk whose
        embedding fails is stored without embeddings and needs_review=True.

        Returns:
            Number of chunks stored
        """
        self.supabase.table(VECTORS_TABLE).delete().eq(
            "video_id", video.id
        ).eq("user_id", self.user_id).execute()

        chunks = [c for c in extract_chunks(video) if len(c.content) >= MIN_CHUNK_LENGTH]
        if not chunks:
            logger.info(f"No valid chunks found for video {video.id}")
            return 0

        metrics = self.video_metrics(video)
        existing = self._existing_chunks()
        base = {
            "user_id": self.user_id,
            "video_id": video.id,
            "views": video.views,
            "published_date": video.published_date,
            **metrics,
        }

        stored = 0
        for chunk in chunks:
            language = detect_language(chunk.content)
            row = {
                **base,
                "section_tag": chunk.section_tag,
                "content_type": chunk.content_type,
                "content": chunk.content,
                "language": language,
            }
            try:
                embedding_src, embedding_en = self.generate_bilingual_embeddings(chunk.content, language)
                is_duplicate, similarity = self.find_duplicate(chunk.content, existing)
                row.update({
                    "embedding_es": json.dumps(embedding_src),
                    "embedding_en": json.dumps(embedding_en),
                    "is_duplicate": is_duplicate,
                    "similarity_score": similarity,
                    "needs_review": False,
                    "video_theme": video.video_theme,
                    "cta_type": video.cta_type,
                    "editing_style": video.editing_style,
                    "likes": video.likes,
                    "comments": video.comments,
                    "shares": video.shares,
                    "duration_seconds": video.duration_seconds,
                })
            except Exception as e:
                logger.error(f"Error embedding chunk '{chunk.content[:50]}...': {e}")
                row["needs_review"] = True

            self.supabase.table(VECTORS_TABLE).insert(row).execute()
            existing.append({"content": chunk.content})
            stored += 1

        logger.info(f"Indexed {stored} chunks for video {video.id}")
        return stored

    def index_video_by_id(self, video_id: str) -> int:
        return self.index_video(self.video_service.get_video(video_id))

    def reindex_all(self, progress=None) -> int:
        """
        Index every video; a video that fails is logged and skipped.

        Args:
            progress: Optional callable invoked after each video (e.g. tqdm.update)

        Returns:
            Number of videos indexed
        """
        indexed = 0
        for video in self.video_service.list_videos():
            try:
                self.index_video(video)
                indexed += 1
            except Exception as e:
                logger.error(f"Failed to index video {video.id}: {e}")
            if progress:
                progress(1)
        logger.info(f"Reindexed {indexed} videos")
        return indexed

    # =========================================================================
    # Search
    # =========================================================================

    def search(
        self,
        query: str,
        top_k: int = 10,
        content_types: Optional[List[str]] = None,
        min_views: Optional[int] = None,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
        language: str = "es"
    ) -> List[BrainSearchResult]:
        """
        Semantic search over indexed chunks.

        Args:
            query: Free text
            top_k: Results returned
            content_types: Restrict to hook / guion / cta
            min_views: Minimum video views
            date_from / date_to: Inclusive ISO publish-date bounds
            language: 'en' searches English embeddings, anything else the source ones

        Returns:
            Results ranked by 0.7 * similarity + 0.2 * saves + 0.1 * follows
        """
        field = "embedding_en" if language == "en" else "embedding_es"

        db_query = self.supabase.table(VECTORS_TABLE).select(
            f"id, video_id, content_type, section_tag, content, video_theme, views, "
            f"saves_per_1k, f_per_1k, retention_pct, published_date, {field}"
        ).eq("user_id", self.user_id).eq("is_duplicate", False)

        if content_types:
            db_query = db_query.in_("content_type", content_types)
        if min_views:
            db_query = db_query.gte("views", min_views)
        if date_from:
            db_query = db_query.gte("published_date", date_from)
        if date_to:
            db_query = db_query.lte("published_date", date_to)

        rows = [r for r in (db_query.execute().data or []) if r.get(field)]
        if not rows:
            return []

        query_vector = np.asarray(self.generate_embedding(query), dtype=float)
        matrix = np.vstack([_parse_vector(r[field]) for r in rows])
        similarities = cosine_similarities(query_vector, matrix)

        results = []
        for row, similarity in zip(rows, similarities):
            saves = float(row.get("saves_per_1k") or 0)
            follows = float(row.get("f_per_1k") or 0)
            results.append(BrainSearchResult(
                id=str(row.get("id")) if row.get("id") is not None else None,
                video_id=str(row["video_id"]),
                content_type=row.get("content_type") or "",
                section_tag=row.get("section_tag"),
                content=row.get("content") or "",
                video_theme=row.get("video_theme"),
                published_date=str(row["published_date"]) if row.get("published_date") else None,
                similarity=float(similarity),
                score=rank_score(float(similarity), saves, follows),
                views=int(row.get("views") or 0),
                saves_per_1k=saves,
                f_per_1k=follows,
                retention_pct=float(row.get("retention_pct") or 0),
            ))

        results.sort(key=lambda r: r.score, reverse=True)
        logger.info(f"Brain search returned {min(len(results), top_k)} results")
        return results[:top_k]
