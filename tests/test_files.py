import os

import pytest

from yantra.messages import SafetyTier, ToolExecutionContext
from yantra.tools.files import ListFilesTool, ReadFileTool, WriteFileTool


@pytest.fixture
def ctx(tmp_path):
    return ToolExecutionContext(workspace_dir=str(tmp_path))


# --- read_file ---


@pytest.mark.asyncio
async def test_read_file_basic(ctx, tmp_path):
    (tmp_path / "test.txt").write_text("line1\nline2\nline3\n")
    result = await ReadFileTool().execute('{"path": "test.txt"}', ctx)
    assert "line1" in result and "line3" in result
    assert "1\t" in result
    assert result == "     1\tline1\n     2\tline2\n     3\tline3\n"


@pytest.mark.asyncio
async def test_read_file_offset_and_limit(ctx, tmp_path):
    (tmp_path / "test.txt").write_text("\n".join(f"line{i}" for i in range(1, 11)) + "\n")
    result = await ReadFileTool().execute('{"path": "test.txt", "offset": 3, "limit": 2}', ctx)
    assert "line3" in result and "line4" in result
    assert "line5" not in result
    assert result == "     3\tline3\n     4\tline4\n"


@pytest.mark.asyncio
async def test_read_file_not_found(ctx):
    with pytest.raises(OSError):
        await ReadFileTool().execute('{"path": "nonexistent.txt"}', ctx)


@pytest.mark.asyncio
async def test_read_file_offset_beyond_end(ctx, tmp_path):
    (tmp_path / "short.txt").write_text("only\n")
    result = await ReadFileTool().execute('{"path": "short.txt", "offset": 5}', ctx)
    assert result == "(empty file or offset beyond end of file)"


@pytest.mark.asyncio
async def test_read_file_strips_carriage_return(ctx, tmp_path):
    (tmp_path / "crlf.txt").write_bytes(b"a\r\nb")
    result = await ReadFileTool().execute('{"path": "crlf.txt"}', ctx)
    assert result == "     1\ta\n     2\tb\n"


@pytest.mark.asyncio
async def test_read_file_outside_workspace(ctx):
    with pytest.raises(PermissionError):
        await ReadFileTool().execute('{"path": "../../etc/passwd"}', ctx)


@pytest.mark.asyncio
async def test_read_file_invalid_input(ctx):
    with pytest.raises(ValueError, match="invalid input"):
        await ReadFileTool().execute("not json", ctx)
    with pytest.raises(ValueError, match="invalid input"):
        await ReadFileTool().execute('{"path": "x", "offset": "two"}', ctx)


def test_read_file_decl():
    tool = ReadFileTool()
    decl = tool.decl()
    assert decl.name == "read_file"
    assert decl.parameters["required"] == ["path"]
    assert decl.parameters["properties"]["offset"]["type"] == "integer"
    assert tool.safety_tier == SafetyTier.READ_ONLY


# --- write_file ---


@pytest.mark.asyncio
async def test_write_file_create(ctx, tmp_path):
    result = await WriteFileTool().execute('{"path": "out.txt", "content": "hello world"}', ctx)
    assert "wrote" in result
    assert result == "wrote 11 bytes to out.txt"
    assert (tmp_path / "out.txt").read_text() == "hello world"


@pytest.mark.asyncio
async def test_write_file_append(ctx, tmp_path):
    (tmp_path / "log.txt").write_text("first\n")
    result = await WriteFileTool().execute(
        '{"path": "log.txt", "content": "second\\n", "append": true}', ctx
    )
    assert result == "appended 7 bytes to log.txt"
    assert (tmp_path / "log.txt").read_text() == "first\nsecond\n"


@pytest.mark.asyncio
async def test_write_file_overwrites(ctx, tmp_path):
    (tmp_path / "f.txt").write_text("old content")
    result = await WriteFileTool().execute('{"path": "f.txt", "content": "new"}', ctx)
    assert result == "wrote 3 bytes to f.txt"
    assert (tmp_path / "f.txt").read_text() == "new"


@pytest.mark.asyncio
async def test_write_file_mkdir_p(ctx, tmp_path):
    result = await WriteFileTool().execute('{"path": "a/b/c/file.txt", "content": "nested"}', ctx)
    assert result == "wrote 6 bytes to a/b/c/file.txt"
    assert (tmp_path / "a" / "b" / "c" / "file.txt").read_text() == "nested"


@pytest.mark.asyncio
async def test_write_file_outside_workspace(ctx):
    with pytest.raises(PermissionError):
        await WriteFileTool().execute('{"path": "/etc/passwd", "content": "x"}', ctx)


def test_write_file_decl():
    tool = WriteFileTool()
    assert tool.decl().parameters["required"] == ["path", "content"]
    assert tool.safety_tier == SafetyTier.SIDE_EFFECTING


# --- list_files ---


@pytest.mark.asyncio
async def test_list_files_non_recursive(ctx, tmp_path):
    (tmp_path / "a.txt").write_text("a")
    (tmp_path / "subdir").mkdir()
    result = await ListFilesTool().execute('{"path": "."}', ctx)
    assert "a.txt" in result
    assert "subdir/" in result
    assert result == "a.txt\nsubdir/\n"


@pytest.mark.asyncio
async def test_list_files_recursive(ctx, tmp_path):
    (tmp_path / "a" / "b").mkdir(parents=True)
    (tmp_path / "a" / "file.txt").write_text("f")
    (tmp_path / "a" / "b" / "deep.txt").write_text("d")
    result = await ListFilesTool().execute('{"path": ".", "recursive": true, "max_depth": 3}', ctx)
    assert "file.txt" in result
    assert "deep.txt" in result
    expected = [
        "a/",
        os.path.join("a", "b") + "/",
        os.path.join("a", "b", "deep.txt"),
        os.path.join("a", "file.txt"),
    ]
    assert result.splitlines() == expected


@pytest.mark.asyncio
async def test_list_files_recursive_depth_limit(ctx, tmp_path):
    (tmp_path / "a" / "b").mkdir(parents=True)
    (tmp_path / "a" / "file.txt").write_text("f")
    (tmp_path / "top.txt").write_text("t")
    result = await ListFilesTool().execute('{"path": ".", "recursive": true, "max_depth": 1}', ctx)
    assert result == "a/\ntop.txt\n"


@pytest.mark.asyncio
async def test_list_files_missing_directory(ctx):
    with pytest.raises(OSError, match="cannot read directory"):
        await ListFilesTool().execute('{"path": "missing"}', ctx)


@pytest.mark.asyncio
async def test_list_files_outside_workspace(ctx):
    with pytest.raises(PermissionError):
        await ListFilesTool().execute('{"path": "../.."}', ctx)