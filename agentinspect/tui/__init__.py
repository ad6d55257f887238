"""Interactive terminal view of an agent pipeline."""