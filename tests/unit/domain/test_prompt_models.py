from pydantic import BaseModel

from promptgate.domain.exceptions import ModelNotFoundError, OutputValidationError, RateLimitCeilingError
from promptgate.domain.models.prompt import PromptInput, PromptResponse, PromptStatus

class Answer(BaseModel):
    value: int

def test_ok_only_for_success():
    prompt_input = PromptInput(input="hi")
    assert PromptResponse(status=PromptStatus.SUCCESS, input=prompt_input).ok
    assert not PromptResponse(status=PromptStatus.API_ERROR, input=prompt_input).ok

def test_to_dict_dumps_structured_output():
    answer = Answer(value=42)
    response = PromptResponse(
        status=PromptStatus.SUCCESS,
        input=PromptInput(input="hi"),
        content=answer,
        structured_output=answer,
        usage={"prompt_tokens": 1, "completion_tokens": 2, "total_tokens": 3},
        model="gpt-4o",
        raw=object(),
        attempts=1,
    )

    data = response.to_dict()

    assert data["status"] == "success"
    assert data["content"] == {"value": 42}
    assert data["structured_output"] == {"value": 42}
    assert data["usage"]["total_tokens"] == 3
    assert data["cost"] is None
    assert "raw" not in data

def test_exception_messages():
    assert "does not match expected schema" in str(OutputValidationError(["value: missing"]))
    ceiling = RateLimitCeilingError(5000, 1000)
    assert ceiling.estimated_tokens == 5000
    assert "5000" in ceiling.message and "1000" in ceiling.message
    assert str(ModelNotFoundError("gpt-9")) == "Model metadata not found for: gpt-9"
