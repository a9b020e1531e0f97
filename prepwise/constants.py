"""Fixed assistant configuration and rubric text sent to the providers."""

from prepwise.schemas.feedback import RubricCategory

# Interviewer persona for the structured interview purpose. The voice runtime
# substitutes {{questions}} from the call's variable values.
INTERVIEWER = {
    "name": "Interviewer",
    "firstMessage": (
        "Hello! Thank you for taking the time to speak with me today. "
        "I'm excited to learn more about you and your experience."
    ),
    "transcriber": {
        "provider": "deepgram",
        "model": "nova-2",
        "language": "en",
    },
    "voice": {
        "provider": "11labs",
        "voiceId": "sarah",
        "stability": 0.4,
        "similarityBoost": 0.8,
        "speed": 0.9,
        "style": 0.5,
        "useSpeakerBoost": True,
    },
    "model": {
        "provider": "openai",
        "model": "gpt-4",
        "messages": [
            {
                "role": "system",
                "content": """You are a professional job interviewer conducting a real-time voice interview with a candidate. Your goal is to assess their qualifications, motivation, and fit for the role.

Interview Guidelines:
Follow the structured question flow:
{{questions}}

Engage naturally & react appropriately:
- Listen actively to responses and acknowledge them before moving forward.
- Ask brief follow-up questions if a response is vague or requires more detail.
- Keep the conversation flowing smoothly while maintaining control.

Be professional, yet warm and welcoming:
- Use official yet friendly language.
- Keep responses concise and to the point, like in a real voice interview.
- Avoid robotic phrasing; sound natural and conversational.

Answer the candidate's questions professionally:
- If asked about the role, company, or expectations, provide a clear and relevant answer.
- If unsure, redirect the candidate to HR for more details.

Conclude the interview properly:
- Thank the candidate for their time.
- Inform them that the company will reach out soon with feedback.
- End the conversation on a polite and positive note.

Keep all your responses short and simple. This is a voice conversation, so keep your responses short, like in a real conversation.""",
            }
        ],
    },
}

FEEDBACK_SYSTEM_INSTRUCTION = (
    "You are a professional interviewer analyzing a mock interview. "
    "Your task is to evaluate the candidate based on structured categories"
)

RUBRIC_DESCRIPTIONS = {
    RubricCategory.COMMUNICATION_SKILLS: "Clarity, articulation, structured responses.",
    RubricCategory.TECHNICAL_KNOWLEDGE: "Understanding of key concepts for the role.",
    RubricCategory.PROBLEM_SOLVING: "Ability to analyze problems and propose solutions.",
    RubricCategory.CULTURAL_ROLE_FIT: "Alignment with company values and job role.",
    RubricCategory.CONFIDENCE_CLARITY: "Confidence in responses, engagement, and clarity.",
}

# Where the client is sent after a call
HOME_PATH = "/"
FEEDBACK_PATH = "/interview/{interview_id}/feedback/{feedback_id}"
