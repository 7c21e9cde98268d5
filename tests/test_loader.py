"""
bfvm — Program Loader Tests

Covers the alphabet filter, the bracket jump table and the error
positions reported for unbalanced programs.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import random

import pytest
from bfvm.config import ALPHABET
from bfvm.errors import LoadError, UnbalancedBrackets
from bfvm.loader import Program, load, load_file


def _random_balanced(rng: random.Random, length: int) -> str:
    """Random program over the full alphabet with well-nested brackets."""
    body = [ch for ch in ALPHABET if ch not in "[]"]
    out = []
    depth = 0
    for _ in range(length):
        r = rng.random()
        if r < 0.15:
            out.append('[')
            depth += 1
        elif r < 0.3 and depth:
            out.append(']')
            depth -= 1
        else:
            out.append(rng.choice(body))
    out.extend(']' * depth)
    return ''.join(out)


class TestFilter:

    def test_keeps_every_instruction(self):
        prog = load(ALPHABET.replace('[', '').replace(']', '') + "[]")
        assert len(prog) == len(ALPHABET)

    def test_drops_everything_else(self):
        prog = load("hello + world\n\t- [ comment ] !?")
        assert prog.code == "+-[]"

    def test_bytes_source(self):
        prog = load(b"+\xff>\x00<")
        assert prog.code == "+><"

    def test_empty(self):
        prog = load("")
        assert len(prog) == 0
        assert prog.jumps == {}

    def test_indexing(self):
        prog = load("+>.")
        assert prog[0] == '+'
        assert prog[2] == '.'

    def test_source_positions(self):
        prog = load("a+\n  >\n.")
        assert prog.source_position(0) == (1, 2)
        assert prog.source_position(1) == (2, 3)
        assert prog.source_position(2) == (3, 1)
        assert prog.source_position(99) == (0, 0)


class TestJumpTable:

    def test_simple_pair(self):
        prog = load("+[-]")
        assert prog.match(1) == 3
        assert prog.match(3) == 1
        assert prog.loop_count == 1

    def test_nested(self):
        prog = load("[[][]]")
        assert prog.jumps == {0: 5, 5: 0, 1: 2, 2: 1, 3: 4, 4: 3}

    def test_indices_ignore_comments(self):
        prog = load("x [ y - z ]")
        assert prog.match(0) == 2

    @pytest.mark.parametrize("seed", range(10))
    def test_random_programs_nest_strictly(self, seed):
        rng = random.Random(seed)
        prog = load(_random_balanced(rng, 200))
        for i, j in prog.jumps.items():
            assert prog.jumps[j] == i
            if prog[i] == '[':
                assert i < j
                assert prog[j] == ']'
                # Nothing inside may pair with something outside
                for k in range(i + 1, j):
                    if prog[k] in '[]':
                        assert i < prog.match(k) < j

    def test_program_is_immutable(self):
        prog = load("+")
        with pytest.raises(Exception):
            prog.code = "-"


class TestUnbalanced:

    def test_unmatched_close(self):
        with pytest.raises(UnbalancedBrackets) as exc:
            load("+]")
        assert exc.value.index == 1
        assert exc.value.char == ']'
        assert (exc.value.line, exc.value.col) == (1, 2)

    def test_unmatched_open(self):
        with pytest.raises(UnbalancedBrackets, match=r"Unmatched '\[' at instruction 0 \(line 1, col 1\)"):
            load("[\n+")

    def test_innermost_open_reported(self):
        with pytest.raises(UnbalancedBrackets) as exc:
            load("[[]\n  [")
        assert exc.value.index == 3
        assert (exc.value.line, exc.value.col) == (2, 3)

    def test_close_before_open(self):
        with pytest.raises(UnbalancedBrackets):
            load("][")

    def test_is_load_error(self):
        with pytest.raises(LoadError):
            load("[[]")

    @pytest.mark.parametrize("seed", range(10))
    def test_random_unbalanced(self, seed):
        rng = random.Random(seed)
        src = _random_balanced(rng, 100)
        pos = rng.randrange(len(src) + 1)
        extra = rng.choice('[]')
        with pytest.raises(UnbalancedBrackets):
            load(src[:pos] + extra + src[pos:])


class TestLoadFile:

    def test_load_file(self, tmp_path):
        path = tmp_path / "prog.bf"
        path.write_bytes(b"++ \xfe [>+<-]\n")
        prog = load_file(path)
        assert prog.code == "++[>+<-]"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_file(tmp_path / "nope.bf")
