import pickle

from mlpoints.utils.errors import (
    ClassificationError,
    InvalidLabel,
    ParseError,
    PointsError,
    SchemaError,
    UserInputError,
)


def test_hierarchy():
    assert issubclass(InvalidLabel, ParseError)
    for cls in (ParseError, SchemaError, ClassificationError, UserInputError):
        assert issubclass(cls, PointsError)


def test_parse_error_message():
    assert str(ParseError("bad token", line_no=3, line="1 x")) == "line 3: bad token"
    assert str(ParseError("bad token")) == "bad token"


def test_errors_survive_pickling():
    """worker 进程抛出的异常需要完整回到主进程"""
    err = pickle.loads(pickle.dumps(InvalidLabel("negative label", line_no=4, line="0 1:1")))

    assert type(err) is InvalidLabel
    assert err.line_no == 4
    assert err.line == "0 1:1"
    assert str(err) == "line 4: negative label"

    cls_err = pickle.loads(pickle.dumps(ClassificationError("boom", point_id=9)))
    assert cls_err.point_id == 9
    assert str(cls_err) == "boom"
