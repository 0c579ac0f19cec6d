from gradebox.challenge import CodingChallenge, ExecutionResult


class HelloChallenge(CodingChallenge):
    execution_mode = "python"

    def grade(self, result: ExecutionResult) -> None:
        result.assert_output_contains(
            "Hello World", "Print 'Hello World' using the name variable"
        )
        if "World" not in result.get_input_file("index.py").split("print", 1)[0]:
            result.fail("Keep the name variable defined before printing")
