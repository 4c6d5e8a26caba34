"""
Example usage of the Code Assist adapter.

Needs an OAuth2 access token and a Google Cloud project:

    export GCLOUD_ACCESS_TOKEN=$(gcloud auth print-access-token)
    export GCLOUD_PROJECT_ID=my-project
    python examples/code_assist_usage.py

Runs two streaming requests: an image question and a code edit with the
file passed as system instruction.
"""

import asyncio
import os
import sys

from code_assist_adapter import (
    AdapterError,
    CodeAssistClient,
    Content,
    GenerateContentRequest,
    GenerationConfig,
    Part,
    Role,
)
from code_assist_adapter.gemini_models import Blob

# 1x1 transparent PNG
TEST_PNG_BASE64 = (
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mP8z8BQDwAEhQGAhKmMIQAAAABJRU5ErkJggg=="
)

SAMPLE_FILE = '''
def calculate_pi():
    return 3.14
'''


async def run_stream(client: CodeAssistClient, request: GenerateContentRequest) -> None:
    print("Answer: ", end="", flush=True)
    async with await client.generate_content_stream(request) as stream:
        async for item in stream:
            if item.ok:
                print(item.unwrap().text, end="", flush=True)
            else:
                print(f"\nError chunk: {item.error}", file=sys.stderr)
    print("\nDone.")


async def main() -> None:
    token = os.environ["GCLOUD_ACCESS_TOKEN"]
    project = os.environ["GCLOUD_PROJECT_ID"]

    async with CodeAssistClient(token, project) as client:
        try:
            real_project = await client.load_code_assist()
            print(f"Handshake success. Project: {real_project}")
            client.set_project_id(real_project)
        except AdapterError as e:
            print(f"Handshake warning: {e}", file=sys.stderr)

        try:
            await client.onboard_user()
        except AdapterError as e:
            # The project may already be active
            print(f"Onboarding warning: {e}", file=sys.stderr)

        print("\nTEST 1: image analysis")
        client.with_model("models/gemini-2.0-flash")
        image_request = GenerateContentRequest(
            contents=[
                Content(
                    role=Role.USER,
                    parts=[
                        Part(text="What is this? Answer in one word."),
                        Part(inline_data=Blob(mime_type="image/png", data=TEST_PNG_BASE64)),
                    ],
                )
            ],
            generation_config=GenerationConfig(temperature=0.4, max_output_tokens=100),
        )
        await run_stream(client, image_request)

        print("\nTEST 2: project context")
        code_request = GenerateContentRequest(
            system_instruction=Content.from_text(
                f"You are a helper. Here is the file:\n```python\n{SAMPLE_FILE}\n```"
            ),
            contents=[Content.from_text("Make the function more precise.", role=Role.USER)],
            generation_config=GenerationConfig(max_output_tokens=512),
        )
        await run_stream(client, code_request)


if __name__ == "__main__":
    asyncio.run(main())
