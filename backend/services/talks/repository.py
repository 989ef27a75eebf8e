"""Talk catalogue backed by Redis lookups and the relational talks table."""

from __future__ import annotations

from sqlalchemy import func
from sqlalchemy.orm import Session

from models.database import Talk, Transcript
from services.captions.errors import CaptionError
from services.captions.orchestrator import SubtitleOrchestrator
from services.talks.client import TalkClient
from services.talks.store import TalkKeyStore
from shared.enums import SubtitleFormat
from shared.models import TalkPayload
from shared.utils import setup_logging

logger = setup_logging("talk-repository")

TRANSCRIPT_LANGUAGE = "en"


class TalkRepository:
    """Get-or-fetch access to talks.

    Redis answers two questions cheaply: is the stored row recent enough
    (``cache:<id>``) and which id belongs to a slug (``slug:<slug>``). The
    talks table holds the metadata; anything missing or stale is fetched from
    the provider and upserted.
    """

    def __init__(
        self,
        db: Session,
        store: TalkKeyStore,
        client: TalkClient,
        orchestrator: SubtitleOrchestrator,
    ):
        self.db = db
        self.store = store
        self.client = client
        self.orchestrator = orchestrator

    def get_talks(self, limit: int = 20) -> list[Talk]:
        """Return the most recent talks, newest id first."""
        return self.db.query(Talk).order_by(Talk.id.desc()).limit(limit).all()

    async def get_talk(self, talk_id: int, slug: str) -> Talk | None:
        if self.store.is_fresh(talk_id):
            return await self.get_talk_by_id(talk_id, slug)
        return await self.save_to_db(slug)

    async def get_talk_by_id(self, talk_id: int, slug: str | None = None) -> Talk | None:
        talk = self.db.get(Talk, talk_id)
        if talk is not None:
            return talk
        if slug:
            return await self.save_to_db(slug)
        return None

    async def get_talk_by_slug(self, slug: str) -> Talk | None:
        talk_id = self.store.talk_id_for_slug(slug)
        if talk_id is not None:
            return await self.get_talk(talk_id, slug)
        return await self.save_to_db(slug)

    async def save_to_db(self, slug: str) -> Talk | None:
        """Fetch a talk from the provider and store it; ``None`` if the provider fails."""
        try:
            payload = await self.client.fetch_talk(slug)
        except CaptionError as e:
            logger.warning(f"Could not fetch talk '{slug}': {e}")
            return None

        try:
            self.store.remember(payload.id, payload.slug)
        except ConnectionError as e:
            logger.warning(f"Talk {payload.id} stored without Redis keys: {e}")

        talk = self._upsert(payload)
        await self.save_transcript_if_not_already(talk)
        return talk

    def _upsert(self, payload: TalkPayload) -> Talk:
        languages = [language.model_dump() for language in payload.languages]
        talk = self.db.get(Talk, payload.id)
        if talk is None:
            talk = Talk(
                id=payload.id,
                name=payload.name,
                slug=payload.slug,
                filmed=payload.filmed,
                published=payload.published,
                description=payload.description,
                image=payload.image,
                languages=languages,
                media_slug=payload.media_slug,
                media_pad=payload.media_pad,
            )
            self.db.add(talk)
            logger.info(f"Inserted talk {payload.id} ('{payload.slug}')")
        else:
            # Only the fields that change after publication are refreshed
            talk.languages = languages
            talk.media_pad = payload.media_pad
            logger.info(f"Refreshed talk {payload.id} ('{payload.slug}')")
        self.db.commit()
        self.db.refresh(talk)
        return talk

    async def save_transcript_if_not_already(self, talk: Talk) -> None:
        """Index the talk's English transcript for search, once."""
        if self.db.get(Transcript, talk.id) is not None:
            return

        try:
            path = await self.orchestrator.get_subtitle_for(
                str(talk.id),
                talk.media_slug,
                [TRANSCRIPT_LANGUAGE],
                time_lag=talk.media_pad or 0.0,
                fmt=SubtitleFormat.TXT,
            )
        except CaptionError as e:
            logger.warning(f"No transcript indexed for talk {talk.id}: {e}")
            return

        # The transcript page opens with a paragraph break
        body = path.read_text(encoding="utf-8")[2:]
        self.db.add(Transcript(id=talk.id, content=f"{talk.name}\n{body}"))
        self.db.commit()
        logger.info(f"Indexed transcript for talk {talk.id} ({len(body)} chars)")

    def get_random_talk(self) -> Talk | None:
        return self.db.query(Talk).order_by(func.random()).first()

    def search_talks_from_db(self, query: str) -> list[Talk]:
        """Talks whose transcript contains every word of ``query``, case-insensitively."""
        words = query.split()
        if not words:
            return []
        statement = self.db.query(Talk).join(Transcript, Transcript.id == Talk.id)
        for word in words:
            statement = statement.filter(
                func.lower(Transcript.content).contains(word.lower(), autoescape=True)
            )
        return statement.order_by(Talk.id.desc()).all()

    async def search_talks(self, query: str) -> list[Talk]:
        """Search through the provider, falling back to the local transcripts."""
        try:
            slugs = await self.client.search(query)
        except CaptionError as e:
            logger.warning(f"Provider search failed, using local transcripts: {e}")
            return self.search_talks_from_db(query)

        talks = []
        for slug in slugs:
            talk = await self.get_talk_by_slug(slug)
            if talk is not None:
                talks.append(talk)
        return talks
