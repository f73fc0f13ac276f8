"""Example: send a chat message to JoseyAI and let the countdown run the plan
Demonstrates planning, the auto-execute countdown and the checkpoint trail.
"""
import asyncio
import logging

from webbuilder.assistant import AssistantRequest, JoseyAssistant, ScreenContext
from webbuilder.config import Settings
from webbuilder.workflow.checkpoints import MemoryCheckpointSink
from webbuilder.workflow.executor import WorkflowExecutor


async def main():
    settings = Settings(auto_execute_after=1)
    sink = MemoryCheckpointSink()
    executor = WorkflowExecutor(sink, auto_execute_after=settings.auto_execute_after)
    assistant = JoseyAssistant(executor=executor, settings=settings)

    context = ScreenContext(current_view="editor", current_file="Hero.tsx")
    response = await assistant.process_request(
        AssistantRequest("Add a testimonial component and deploy to the server", "demo-user", context=context))

    plan = response.plan
    print('JoseyAI:', response.message)
    for step in plan.steps:
        print(f'  - [{step.id}] {step.title} (after: {", ".join(step.dependencies) or "-"})')

    # Deny here instead to see the plan fail with user_cancelled
    # assistant.deny(plan.id)

    while not plan.status.is_terminal:
        await asyncio.sleep(0.1)

    print('\n--- RUN RESULT ---')
    print('status:', plan.status.value)
    print('approved_by:', plan.approved_by)
    print('progress:', f'{plan.progress:.0f}%')
    print('checkpoints:', [c.name for c in sink.checkpoints])
    if plan.failure is not None:
        print(plan.failure_report())


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
