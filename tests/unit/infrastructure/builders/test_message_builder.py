from promptgate.domain.models.prompt import PromptInput
from promptgate.infrastructure.builders.message_builder import MessageBuilder

def test_builds_system_history_and_user_in_order():
    builder = MessageBuilder()
    history = [
        {"role": "user", "content": "Hi"},
        {"role": "assistant", "content": "Hello!"},
    ]
    messages = builder.build_messages(PromptInput(input="How are you?", messages=history), "gpt-4o", "Be brief.")

    assert messages == [
        {"role": "system", "content": "Be brief."},
        {"role": "user", "content": "Hi"},
        {"role": "assistant", "content": "Hello!"},
        {"role": "user", "content": "How are you?"},
    ]

def test_request_system_message_overrides_default():
    messages = MessageBuilder().build_messages(PromptInput(input="x", system_message="Override"), "gpt-4o", "Default")
    assert messages[0] == {"role": "system", "content": "Override"}

def test_no_system_message_when_none_configured():
    messages = MessageBuilder().build_messages(PromptInput(input="x"), "gpt-4o")
    assert messages == [{"role": "user", "content": "x"}]

def test_structured_input_is_json_encoded():
    messages = MessageBuilder().build_messages(PromptInput(input={"city": "Paris", "days": 3}), "gpt-4o")
    assert messages[-1]["content"] == '{"city": "Paris", "days": 3}'

def test_images_become_content_parts_for_vision_models():
    prompt_input = PromptInput(input="Describe", images=["https://example.com/a.png", "https://example.com/b.png"])
    message = MessageBuilder().build_messages(prompt_input, "gpt-4o")[-1]

    assert message["role"] == "user"
    assert message["content"] == [
        {"type": "text", "text": "Describe"},
        {"type": "image_url", "image_url": {"url": "https://example.com/a.png"}},
        {"type": "image_url", "image_url": {"url": "https://example.com/b.png"}},
    ]

def test_images_dropped_for_models_without_vision():
    prompt_input = PromptInput(input="Describe", images=["https://example.com/a.png"])
    message = MessageBuilder().build_messages(prompt_input, "gpt-3.5-turbo")[-1]
    assert message == {"role": "user", "content": "Describe"}
