from __future__ import annotations

import logging

from dotenv import load_dotenv

from mastery_tutor.core.config import TutorConfig
from mastery_tutor.core.factory import get_llm_provider
from mastery_tutor.orchestrators.tutor_agent import TutorAgent
from mastery_tutor.response.sections import parse_response
from mastery_tutor.state.app_state import AppState


def main() -> None:
    load_dotenv()
    logging.basicConfig(level=logging.INFO)

    cfg = TutorConfig.from_env()
    state = AppState(selected_model=cfg.model)
    agent = TutorAgent(llm=get_llm_provider("gemini"), state=state, config=cfg)

    reply = agent.send_turn("Why does ice float on water?")
    if reply is None:
        print("Request failed:", state.error.message if state.error else "nothing sent")
        return

    parsed = parse_response(reply.content)
    for section in parsed.sections:
        print(f"== {section.label or '(intro)'}")
        print(section.body)
    print("Diagram:", "yes" if parsed.diagram_source else "no")
    print("Topics:", parsed.topics)


if __name__ == "__main__":
    main()
