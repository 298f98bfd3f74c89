"""Multi-intent question answering: datasets, parsing, metrics, agent and evaluation."""