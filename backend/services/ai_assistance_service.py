"""Organizer tips generated by an OpenAI-compatible model, with canned replies offline."""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI
from pydantic import BaseModel

from config.app_config import LLM_API_KEY, LLM_BASE_URL, LLM_MODEL
from workflow.errors import ValidationError

logger = logging.getLogger(__name__)

SYSTEM_INSTRUCTION = "You are a helpful assistant for hackathon organizers."

GENERIC_REPLY = (
    "Mock AI Service: No specific mock response configured for this topic. "
    "This is a generic mock reply."
)


class AITopic(BaseModel):
    id: str
    title: str
    prompt: str


class AITips(BaseModel):
    topic_id: str
    title: str
    text: str
    source: str  # "llm" or "mock"


TOPICS: List[AITopic] = [
    AITopic(
        id="judging_criteria",
        title="Tips for Designing Judging Criteria",
        prompt=(
            "Provide actionable best practices for designing clear, fair, and effective judging criteria "
            "for a software development hackathon. Focus on aspects like objectivity, relevance to "
            "hackathon goals, and clarity for judges."
        ),
    ),
    AITopic(
        id="landing_page",
        title="Tips for Creating Engaging Public Pages",
        prompt=(
            "Suggest key elements and content strategies for creating an engaging public landing page "
            "for a hackathon. What information is crucial, and how can it be presented to attract participants?"
        ),
    ),
    AITopic(
        id="submission_questions",
        title="Tips for Writing Effective Submission Questions",
        prompt=(
            "What are some best practices for writing submission questions for a hackathon? The questions "
            "should help judges understand the project and evaluate it effectively. Provide examples for "
            "different types of information needed (e.g., problem, solution, tech stack)."
        ),
    ),
    AITopic(
        id="participant_engagement",
        title="Tips for Increasing Participant Engagement",
        prompt=(
            "Provide strategies and tips for hackathon organizers to increase participant engagement "
            "before, during, and after the event."
        ),
    ),
]

# Keyed by topic id
CANNED_TIPS: Dict[str, str] = {
    "judging_criteria": """Mock AI Response: Best Practices for Judging Criteria
1. Clarity & Specificity: criteria should be unambiguous. Prefer "User Interface intuitiveness and visual appeal" over "Good Design".
2. Relevance: align criteria with the hackathon's theme and goals.
3. Measurability: give judges rubrics or examples for subjective criteria.
4. Weighting: give more points to the criteria that matter most.
5. Simplicity: 4-6 well-defined criteria per stage are usually enough.
6. Judge Training: make sure every judge applies each criterion consistently.""",
    "landing_page": """Mock AI Response: Tips for Engaging Public Pages
1. Compelling hero section with the title and a concise value proposition.
2. Key information upfront: dates, theme and a clear "Register Now!" call to action.
3. An "About" section explaining what makes this hackathon unique.
4. Rules and eligibility stated plainly.
5. Prizes and sponsors.
6. A schedule or timeline.
7. Problem statements participants will tackle.
8. An FAQ section.
9. A layout that works on mobile.
10. Highlights from past events, if any.""",
    "submission_questions": """Mock AI Response: Writing Effective Submission Questions
1. Purpose-driven: each question should gather something judges need.
2. Clarity: plain language, no unnecessary jargon.
3. Open-ended but focused, e.g. "Describe the technical challenges you faced and how you overcame them."
4. Cover the key areas:
   * Problem: "What specific problem does your project address?"
   * Solution: "How does your project solve this problem?"
   * Innovation: "What is unique about your approach?"
   * Tech stack: "What key technologies and APIs did you use?"
   * Impact: "How could it be developed further?"
   * Demo link
5. Mark only the truly essential questions as required.
6. Order questions so they tell the story of the project.""",
    "participant_engagement": """Mock AI Response: Increasing Participant Engagement
Before the hackathon:
1. Regular updates by email and social media.
2. Workshops on relevant technologies or ideation.
3. Channels or events that help individuals find teams.

During the hackathon:
1. An energetic kick-off.
2. Access to mentors with scheduled check-ins.
3. Mini-challenges with small prizes.
4. Active chat channels for announcements and Q&A.

After the hackathon:
1. Share judging feedback where possible.
2. Showcase winners and projects publicly.
3. Keep an alumni group or newsletter going.
4. Survey participants to improve the next event.""",
}


def get_topic(topic_id: str) -> AITopic:
    topic = next((t for t in TOPICS if t.id == topic_id), None)
    if topic is None:
        raise ValidationError(f"Unknown tips topic: {topic_id!r}")
    return topic


def canned_reply(topic: AITopic) -> str:
    return CANNED_TIPS.get(topic.id, GENERIC_REPLY)


class AIAssistanceService:
    """Answers organizer prompts through an OpenAI-compatible chat endpoint.

    Without a configured endpoint, or when the endpoint fails, the canned
    reply for the topic is returned instead.
    """

    def __init__(
        self,
        client: Optional[Any] = None,
        base_url: str = LLM_BASE_URL,
        model: str = LLM_MODEL,
        temperature: float = 0.7,
        max_tokens: int = 800,
    ):
        if client is None and base_url:
            client = AsyncOpenAI(base_url=f"{base_url}/v1", api_key=LLM_API_KEY)
        self.client = client
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    @property
    def is_live(self) -> bool:
        return self.client is not None

    def list_topics(self) -> List[AITopic]:
        return list(TOPICS)

    async def generate_text(self, prompt: str, system: Optional[str] = SYSTEM_INSTRUCTION) -> Optional[str]:
        """Return the model's reply, or None when no model is reachable."""
        if self.client is None:
            return None
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
            content = response.choices[0].message.content or ""
        except Exception as e:
            logger.warning(f"Tips request to {self.model} failed, using canned reply: {e}")
            return None
        return content.strip() or None

    async def get_tips(self, topic_id: str) -> AITips:
        topic = get_topic(topic_id)
        text = await self.generate_text(topic.prompt)
        if text is None:
            return AITips(topic_id=topic.id, title=topic.title, text=canned_reply(topic), source="mock")
        return AITips(topic_id=topic.id, title=topic.title, text=text, source="llm")


_ai_service: Optional[AIAssistanceService] = None
_ai_service_lock = threading.Lock()


def get_ai_assistance_service() -> AIAssistanceService:
    global _ai_service
    with _ai_service_lock:
        if _ai_service is None:
            _ai_service = AIAssistanceService()
        return _ai_service


def reset_ai_assistance_service(service: Optional[AIAssistanceService] = None) -> None:
    global _ai_service
    with _ai_service_lock:
        _ai_service = service
