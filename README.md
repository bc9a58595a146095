# quantumn

Building blocks for a local-first AI coding assistant:

- **Themes** (`quantumn.config.themes`): built-in colour palettes (`oxidized`,
  `default`, `tokyo_night`, `hacker`, `deep_black`) plus custom TOML themes.
  Load them with `Theme.load`, list them with `Theme.list_themes`, and store your
  own with `Theme.save`.
- **Prompts** (`quantumn.prompts`): system prompts for the `plan`, `build` and
  `chat` operating modes (`Mode`, `get_system_prompt`, `get_full_prompt`), plus
  safety and efficiency guidelines (`get_safety_prompts`,
  `get_complete_system_prompt`).
- **Providers** (`quantumn.providers`): async chat clients that share one
  interface (`Provider`) for Gemini, Groq, OpenCode Zen, Ollama and llama.cpp
  servers, and discovery of locally installed models from Ollama, LM Studio and
  llama.cpp (`discover_all_models`, `get_all_models`).

## Installation

```
pip install .
```

## Example

```python
import asyncio

from quantumn.prompts.modes import Mode, get_full_prompt
from quantumn.providers.ollama import OllamaProvider
from quantumn.providers.provider_trait import Message, Role


async def main():
    provider = OllamaProvider(model="llama3.2")
    reply = await provider.send_with_system(
        [Message(Role.USER, "Explain what a borrow checker does.")],
        get_full_prompt(Mode.parse("chat")),
    )
    print(reply)


asyncio.run(main())
```

Cloud providers read their settings from the environment:
`GEMINI_API_KEY`, `GEMINI_BASE_URL`, `GEMINI_MODEL`, `GROQ_API_KEY`,
`GROQ_BASE_URL`, `GROQ_MODEL` and `OPENCODE_API_KEY`. Ollama's model store is
located through `OLLAMA_MODELS` when it is set.

## Running the tests

```
pip install .[test]
pytest
```