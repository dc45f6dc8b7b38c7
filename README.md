# ulutils

A set of small command-line tools for inspecting and adjusting a Linux
system. They need nothing beyond the Python standard library (3.10 or later).

## Installation

    pip install .

Installing the package puts these commands on your path:

| Command      | What it does                                                    |
|--------------|-----------------------------------------------------------------|
| `lsmem`      | List the ranges of memory blocks from sysfs and their state     |
| `lslocks`    | List the file locks found in `/proc/locks` and process fdinfo   |
| `mcookie`    | Print a random 128-bit hex cookie, optionally seeded from files |
| `rev`        | Reverse the bytes of each line of files or standard input       |
| `mesg`       | Show or set whether others may write to your terminal           |
| `mountpoint` | Report whether a path is a mount point                          |
| `renice`     | Change the nice value of a running process                      |

## Examples

Show memory blocks as JSON, with sizes in bytes:

    lsmem -J -b

Read memory information from another system root, one row per block:

    lsmem --sysroot /mnt/target -a

Split memory ranges only where the NUMA node changes, and print only the summary:

    lsmem -S node
    lsmem --summary=only

List locks held by one process, without truncating paths:

    lslocks -p 1234 -u

Show every lock column, or add columns to the default set:

    lslocks --output-all
    lslocks -o +INODE,HOLDERS

Make a cookie seeded with at most 2 KiB read from a file (`-` reads stdin):

    mcookie -f /etc/hostname -m 2KiB -v

Reverse NUL-separated records:

    rev --zero records.bin

Deny write access to your terminal:

    mesg n

Check a directory:

    mountpoint /proc

Lower a process's priority:

    renice 10 1234

Every command accepts `--help` for its full list of options.

## Exit status

- `mesg` with no argument exits 0 for "is y" and 1 for "is n"; `mesg n` exits 1;
  when none of stdin, stdout and stderr is a terminal it exits 2.
- `rev` exits 1 if any file could not be opened or read.
- `mcookie` exits 1 when `--max-size` cannot be parsed; files that cannot be
  opened are reported and skipped.
- Invalid command-line arguments make every command exit 1.

## Library use

The pieces behind the commands can also be imported:

- `ulutils.humansize.size_to_human_string(12000)` returns `"11.7K"`.
- `ulutils.mcookie.parse_size("2KiB")` returns `2048`; bad input raises
  `ParseSizeError`. `generate_cookie(seeds, random_data)` returns the MD5
  hex digest of the seed blocks followed by the random data.
- `ulutils.rev.reverse_stream(stream, output, separator)` works on binary streams.
- `ulutils.lsmem_blocks.read_memory_info(sysmem, split)` reads a sysfs memory
  directory into a `MemoryInfo`; `ulutils.lsmem` formats it with
  `create_rows`, `format_table`, `format_json`, `format_pairs`, `format_raw`
  and `format_summary`.
- `ulutils.lslocks.procfs.parse_lock_line` parses one lock line into a
  `LockInfo`; `ulutils.lslocks.table.Table` renders aligned, raw or JSON tables.

## Limitations

- `mountpoint` only prints whether the path is a mount point and always exits
  0; it compares the path's device with that of `..` taken from the current
  working directory, or treats inode 2 as a filesystem root.
- `renice` takes exactly one nice value and one process ID; it cannot change
  process groups or users.
- `lslocks` reads `/proc` directly and only runs usefully on Linux; locks whose
  file cannot be found show the mount point followed by `/...`.
- `mesg` needs a Unix terminal.

## Running the tests

    pip install .[test]
    pytest