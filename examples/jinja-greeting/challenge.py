from gradebox.challenge import CodingChallenge, ExecutionResult


class GreetingChallenge(CodingChallenge):
    execution_mode = "jinja"

    def setup_context(self, context):
        context["visitors"] = ["Leanna", "Ryan"]

    def grade(self, result: ExecutionResult) -> None:
        for name in result.context["visitors"]:
            if f"<li>{name}</li>" not in result.output:
                result.fail(f"Expected a <li>{name}</li> item in the list")
