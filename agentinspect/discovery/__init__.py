"""Process, path and port strategies for finding local agents, and their merging."""