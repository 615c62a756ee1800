from dataclasses import dataclass
from typing import Optional

ADDITION = "addition"
SUBTRACTION = "subtraction"
BOTH = "both"
ARITHMETIC_MODES = (ADDITION, SUBTRACTION, BOTH)

STANDARD = "standard"
BLANK = "blank"
DISPLAY_MODES = (STANDARD, BLANK)

SYMBOL = {
    ADDITION: "+",
    SUBTRACTION: "-",
}


@dataclass(frozen=True)
class ArithmeticProblem:
    first_operand: int
    operator: str
    result: int
    expected_answer: int
    display_mode: str = STANDARD
    second_operand: Optional[int] = None

    def display_text(self):
        if self.display_mode == BLANK:
            return f"{self.first_operand} {self.operator} ? = {self.result}"
        return f"{self.first_operand} {self.operator} {self.second_operand} = ?"

    def is_correct(self, text):
        return parse_answer(text) == self.expected_answer

    def to_dict(self):
        return {
            "first_operand": self.first_operand,
            "second_operand": self.second_operand,
            "operator": self.operator,
            "result": self.result,
            "display_mode": self.display_mode,
            "expected_answer": self.expected_answer,
        }

    @classmethod
    def from_dict(cls, data):
        second = data.get("second_operand")
        return cls(
            first_operand=int(data["first_operand"]),
            second_operand=None if second is None else int(second),
            operator=data["operator"],
            result=int(data["result"]),
            display_mode=data.get("display_mode", STANDARD),
            expected_answer=int(data["expected_answer"]),
        )


def parse_answer(text) -> Optional[int]:
    """Integer value of a typed answer, or None if it is not a whole number."""
    try:
        return int(str(text).strip())
    except ValueError:
        return None


def pick_value(value_range, np_random):
    low, high = value_range
    return int(np_random.integers(low, high + 1))


def choose_operation(mode, np_random):
    if mode == BOTH:
        return (ADDITION, SUBTRACTION)[int(np_random.integers(0, 2))]
    return mode


def generate_problem(mode, first_range, second_range, display_mode, np_random) -> ArithmeticProblem:
    op = choose_operation(mode, np_random)
    left = pick_value(first_range, np_random)
    right = pick_value(second_range, np_random)

    # Keep subtraction results non-negative
    if op == SUBTRACTION and left < right:
        left, right = right, left

    result = left + right if op == ADDITION else left - right

    if display_mode == BLANK:
        # left op ? = result, the blank holds the value drawn from the second range
        return ArithmeticProblem(
            first_operand=left,
            operator=SYMBOL[op],
            result=result,
            expected_answer=right,
            display_mode=BLANK,
        )

    return ArithmeticProblem(
        first_operand=left,
        second_operand=right,
        operator=SYMBOL[op],
        result=result,
        expected_answer=result,
        display_mode=STANDARD,
    )
