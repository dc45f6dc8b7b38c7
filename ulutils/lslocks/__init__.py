"""List the file locks held on the local system, read from /proc."""