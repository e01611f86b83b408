import matplotlib.pyplot as plt
from simulator import OSSimulator

page_policies = ['FIFO', 'LRU']
cpu_policies = ['RR', 'SJF']
frame_counts = [2, 4, 6, 8, 12, 16]
data_files = ['data1.txt', 'data2.txt']


def simulate(data_file, cpu_policy='RR', page_policy='FIFO', num_frames=8):
    simulator = OSSimulator(cpu_policy=cpu_policy, page_policy=page_policy,
                            num_frames=num_frames, random_seed=0)
    simulator.load_workload(data_file)
    simulator.run_until_idle()
    return simulator.summary()


print("Running simulations...")
fault_results = {}
for data_file in data_files:
    fault_results[data_file] = {}
    for page_policy in page_policies:
        fault_results[data_file][page_policy] = [
            simulate(data_file, page_policy=page_policy, num_frames=n)['page_faults']
            for n in frame_counts
        ]

cpu_results = {}
for data_file in data_files:
    cpu_results[data_file] = {cpu_policy: simulate(data_file, cpu_policy=cpu_policy)
                              for cpu_policy in cpu_policies}

fig, axes = plt.subplots(1, 3, figsize=(15, 5))
fig.suptitle('Scheduling and Page Replacement Comparison', fontsize=14, fontweight='bold')

# Page faults over pool size
ax = axes[0]
for data_file in data_files:
    for page_policy in page_policies:
        ax.plot(frame_counts, fault_results[data_file][page_policy], marker='o',
                label=f'{data_file} {page_policy}')
ax.set_title('Page Faults vs Frames')
ax.set_xlabel('Frames')
ax.set_ylabel('Page Faults')
ax.grid(alpha=0.3)
ax.legend(fontsize=8)

metrics = ['avg_wait', 'avg_turnaround']
titles = ['Average Wait', 'Average Turnaround']

for idx, (metric, title) in enumerate(zip(metrics, titles), 1):
    ax = axes[idx]
    data1 = [cpu_results['data1.txt'][policy][metric] for policy in cpu_policies]
    data2 = [cpu_results['data2.txt'][policy][metric] for policy in cpu_policies]

    x = range(len(cpu_policies))
    width = 0.35
    bars1 = ax.bar([i - width/2 for i in x], data1, width, label='data1.txt')
    bars2 = ax.bar([i + width/2 for i in x], data2, width, label='data2.txt')

    for bar in list(bars1) + list(bars2):
        height = bar.get_height()
        ax.text(bar.get_x() + bar.get_width()/2., height,
                f'{height:.1f}', ha='center', va='bottom', fontsize=9)

    ax.set_title(title)
    ax.set_xticks(list(x))
    ax.set_xticklabels(cpu_policies)
    ax.set_ylabel('Ticks')
    ax.grid(axis='y', alpha=0.3)
    ax.legend()

plt.tight_layout()
plt.savefig('policy_comparison.png', dpi=300, bbox_inches='tight')
print("\nGraph saved as 'policy_comparison.png'")
plt.show()
