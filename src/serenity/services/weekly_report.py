"""
Weekly wellness reports.

Once a week every user gets a short report built from the last seven days
of moods, journal entries and chat sessions. The report is written by the
LLM when one is configured and by a fixed template otherwise. Users with
a report from the last seven days, or with no mood or journal activity,
are skipped.
"""

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional, Sequence
from uuid import UUID

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..database import ChatSession, JournalEntry, Mood, User, WeeklyReport, utcnow
from ..llm import LLMCaller
from ..repositories import (
    ChatSessionRepository,
    JournalRepository,
    MoodRepository,
    UserRepository,
    WeeklyReportRepository,
)
from ..utils.dates import to_iso
from .background_queue import BackgroundQueue

REPORT_PERIOD_DAYS = 7


# =============================================================================
# Report Prompt
# =============================================================================

WEEKLY_REPORT_PROMPT = '''You are the user's personal wellness guide. Generate a short, friendly weekly report summarizing their emotional trends, behaviors, and growth.

User: {user_name}
Week Data:
- Average mood: {average_mood}/10
- Mood trend: {mood_trend}
- Top emotions: {top_emotions}
- Activity streak: {active_days} days
- Progress highlights: {highlights}
- Journal entries: {journal_count}
- Therapy sessions: {session_count}

The report should include:
1. A warm, personalized introduction (use their name)
2. A mood overview (average mood, trends, notable patterns)
3. Key highlights or positive behaviors
4. Emotional challenges or repeating struggles (if any)
5. Practical suggestions for the coming week (2-3 actionable items)
6. An encouraging closing note

Keep it around 150-250 words, use a gentle and hopeful tone, and always end with a motivational message.
Focus on helpful insight, not judgment. If user data is limited, speak broadly but stay uplifting.
Use conversational language like a supportive friend, not clinical language.

Format as a clean, readable report.'''


@dataclass
class WeeklyData:
    moods: List[Mood] = field(default_factory=list)
    journals: List[JournalEntry] = field(default_factory=list)
    sessions: List[ChatSession] = field(default_factory=list)
    average_mood: float = 0.0
    mood_trend: str = "stable"
    top_emotions: List[str] = field(default_factory=list)
    active_days: int = 0
    highlights: List[str] = field(default_factory=list)

    @property
    def has_data(self) -> bool:
        return bool(self.moods or self.journals)


# =============================================================================
# Weekly Metrics
# =============================================================================

def _mood_value(mood: Mood) -> float:
    """Moods are stored 0-100; reports speak in tenths."""
    return (mood.score if mood.score is not None else 50) / 10


def calculate_mood_trend(moods: Sequence[Mood]) -> str:
    """Compare the average of the second half of the week against the first."""
    if len(moods) < 2:
        return "stable"

    middle = len(moods) // 2
    first = [_mood_value(m) for m in moods[:middle]]
    second = [_mood_value(m) for m in moods[middle:]]
    difference = sum(second) / len(second) - sum(first) / len(first)

    if difference > 0.5:
        return "improving"
    if difference < -0.5:
        return "declining"
    return "stable"


def extract_top_emotions(journals: Sequence[JournalEntry], limit: int = 3) -> List[str]:
    counts = Counter(entry.emotional_state for entry in journals if entry.emotional_state)
    return [emotion for emotion, _ in counts.most_common(limit)]


def count_active_days(moods: Sequence[Mood], journals: Sequence[JournalEntry]) -> int:
    days = {m.timestamp.date() for m in moods}
    days.update(j.created_at.date() for j in journals)
    return len(days)


def extract_progress_highlights(journals: Sequence[JournalEntry], moods: Sequence[Mood]) -> List[str]:
    highlights: List[str] = []

    def add(text: str) -> None:
        if text not in highlights:
            highlights.append(text)

    for entry in journals:
        content = (entry.content or "").lower()
        if "grateful" in content or "thankful" in content:
            add("Practiced gratitude")
        if "progress" in content or "better" in content:
            add("Noticed personal growth")
        if "calm" in content or "peaceful" in content:
            add("Found moments of peace")

    if len(moods) > 1 and _mood_value(moods[-1]) > _mood_value(moods[0]) + 1:
        add("Mood improved throughout the week")

    return highlights


async def gather_weekly_data(
    session: AsyncSession,
    user_id: UUID,
    start: datetime,
    end: datetime,
) -> WeeklyData:
    """Load the week's activity and compute the report metrics."""
    moods = await MoodRepository(Mood, session).get_in_range(user_id, start, end)
    journals = await JournalRepository(JournalEntry, session).get_in_range(user_id, start, end)
    sessions = await ChatSessionRepository(ChatSession, session).get_in_range(user_id, start, end)

    average = sum(_mood_value(m) for m in moods) / len(moods) if moods else 0.0

    return WeeklyData(
        moods=moods,
        journals=journals,
        sessions=sessions,
        average_mood=round(average, 1),
        mood_trend=calculate_mood_trend(moods),
        top_emotions=extract_top_emotions(journals),
        active_days=count_active_days(moods, journals),
        highlights=extract_progress_highlights(journals, moods),
    )


# =============================================================================
# Report Text
# =============================================================================

async def generate_ai_weekly_report(data: WeeklyData, user_name: str, llm_caller: LLMCaller) -> str:
    prompt = WEEKLY_REPORT_PROMPT.format(
        user_name=user_name,
        average_mood=data.average_mood,
        mood_trend=data.mood_trend,
        top_emotions=", ".join(data.top_emotions) or "Not specified",
        active_days=data.active_days,
        highlights=", ".join(data.highlights) or "None noted",
        journal_count=len(data.journals),
        session_count=len(data.sessions),
    )
    return (await llm_caller(prompt)).strip()


def generate_fallback_weekly_report(data: WeeklyData, user_name: str, start: datetime, end: datetime) -> str:
    lines = [
        f"**Weekly Wellness Report - {start:%Y-%m-%d} to {end:%Y-%m-%d}**",
        "",
        f"Hey {user_name}, here's a quick look at how your week unfolded.",
        "",
    ]

    if data.has_data:
        if data.average_mood > 0:
            mood = f"Your average mood this week was {data.average_mood}/10. "
            if data.mood_trend == "improving":
                mood += "I can see your mood improved throughout the week - that's a great sign!"
            elif data.mood_trend == "declining":
                mood += "I noticed your mood dipped a bit this week."
            else:
                mood += "Your mood stayed pretty steady this week."
            lines += [mood, ""]

        if data.highlights:
            lines.append("Some highlights from your week:")
            lines += [f"- {highlight}" for highlight in data.highlights]
            lines.append("")

        if data.active_days > 0:
            lines += [f"You were active {data.active_days} days this week - that's consistency!", ""]

        lines += [
            "For next week, try these small things:",
            "- Start each morning with one positive intention",
            "- Take a 5-minute break when you feel overwhelmed",
            "- Reflect on your day before bed",
            "",
        ]
    else:
        lines += [
            "I don't have much data from this week, but that's okay! "
            "Sometimes quiet weeks are exactly what we need.",
            "",
            "For next week, consider:",
            "- Checking in with your mood once a day",
            "- Writing down one thing you're grateful for",
            "- Taking a moment to breathe when you feel stressed",
            "",
        ]

    lines.append(
        "You're doing important work by paying attention to your mental health. "
        "Keep caring for yourself in small ways - they add up."
    )
    return "\n".join(lines)


# =============================================================================
# Scheduler
# =============================================================================

class WeeklyReportScheduler:
    """
    Pushes one report job per user onto a background queue.

    Args:
        session_factory: each job opens its own session
        queue: bounded-concurrency queue that runs the jobs
        llm_caller: writes the report; the template is used without one
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        queue: BackgroundQueue,
        llm_caller: Optional[LLMCaller] = None,
    ):
        self.session_factory = session_factory
        self.queue = queue
        self.llm_caller = llm_caller

    async def generate_for_user(self, user_id: UUID, now: Optional[datetime] = None) -> Optional[WeeklyReport]:
        """
        Build and store one user's report.

        Returns None when the user was skipped. Errors propagate so the
        queue can log and drop the job.
        """
        now = now or utcnow()
        start = now - timedelta(days=REPORT_PERIOD_DAYS)

        async with self.session_factory() as session:
            last = await WeeklyReportRepository(WeeklyReport, session).get_latest(user_id)
            if last is not None and last.created_at > start:
                logger.debug(f"Skipping weekly report for user {user_id} - report from {last.created_at} exists")
                return None

            data = await gather_weekly_data(session, user_id, start, now)
            if not data.has_data:
                logger.info(f"Skipping weekly report for user {user_id} - no data")
                return None

            user = await UserRepository(User, session).get(user_id)
            user_name = (user.name if user else None) or "User"

            content = None
            if self.llm_caller is not None:
                try:
                    content = await generate_ai_weekly_report(data, user_name, self.llm_caller)
                except Exception as e:
                    logger.warning(f"AI weekly report generation failed for user {user_id}, using fallback: {e}")
            if not content:
                content = generate_fallback_weekly_report(data, user_name, start, now)

            report = WeeklyReport(
                user_id=user_id,
                content=content,
                payload={
                    "week_start": to_iso(start),
                    "week_end": to_iso(now),
                    "generated_at": to_iso(utcnow()),
                },
                created_at=now,
            )
            session.add(report)
            await session.commit()

        logger.info(f"Generated scheduled weekly report for user {user_id}")
        return report

    async def run_once(self, now: Optional[datetime] = None) -> int:
        """Enqueue a report job for every user. Returns the number enqueued."""
        now = now or utcnow()
        logger.info("Running weekly report scheduler")

        try:
            async with self.session_factory() as session:
                users = await UserRepository(User, session).list_all()
        except Exception as e:
            logger.error(f"Weekly report scheduler failed: {e}", exc_info=True)
            return 0

        for user in users:
            user_id = user.id

            async def job(user_id: UUID = user_id) -> None:
                await self.generate_for_user(user_id, now=now)

            self.queue.push(job)

        logger.info(f"Queued {len(users)} weekly report jobs")
        return len(users)
